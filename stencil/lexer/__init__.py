from .core import Lexer, Token, TokenType, lex

__all__ = ('Lexer', 'Token', 'TokenType', 'lex')
