"""
Render template errors as annotated source snippets.

The layout follows the graphical reports of the ``miette`` crate so that an
error reads the same whether it comes from a template compiled at startup or
one rendered inside a request::

      × Empty variable tag
       ╭─[templates/parse_error.txt:1:28]
     1 │ This is an empty variable: {{ }}
       ·                            ──┬──
       ·                              ╰── here
       ╰────
"""
import textwrap

CONTEXT_LINES = 1
WIDTH = 80


def _line_starts(source):
    starts = [0]
    for index, char in enumerate(source):
        if char == '\n':
            starts.append(index + 1)
    return starts


def _locate(starts, offset):
    """Return the zero-based line number holding ``offset``."""
    low, high = 0, len(starts) - 1
    while low < high:
        middle = (low + high + 1) // 2
        if starts[middle] <= offset:
            low = middle
        else:
            high = middle - 1
    return low


def _underline(labels):
    """
    Draw the underline row for the labels of one source line.

    ``labels`` is a list of ``(column, length, text)`` and the result is the
    underline string together with the column each label hangs from.
    """
    width = max(column + max(length, 1) for column, length, _ in labels)
    row = [' '] * width
    anchors = []
    for column, length, text in labels:
        if length == 0:
            anchor = column
            row[anchor] = '▲'
        elif length == 1:
            anchor = column
            row[anchor] = '┬'
        else:
            for index in range(column, column + length):
                row[index] = '─'
            anchor = column + length // 2
            row[anchor] = '┬'
        anchors.append((anchor, text))
    return ''.join(row).rstrip(), anchors


def _label_rows(anchors):
    rows = []
    pending = sorted(anchors)
    while pending:
        anchor, text = pending.pop()
        row = [' '] * anchor
        for other, _ in pending:
            row[other] = '│'
        rows.append(''.join(row) + '╰── ' + text)
    return rows


def render_diagnostic(source, error, name=None):
    """
    Return ``error`` formatted against ``source`` as a multi-line report.

    ``name`` is the template origin shown in the header, if any.
    """
    starts = _line_starts(source)
    lines = source.split('\n')

    by_line = {}
    first = None
    for label in error.get_labels():
        start, length = label.at
        line = _locate(starts, start)
        column = start - starts[line]
        # Spans running over a line break are cut at the end of their line.
        length = max(0, min(length, len(lines[line]) - column))
        by_line.setdefault(line, []).append((column, length, label.text))
        if first is None or start < first[0]:
            first = (start, line, column)

    output = textwrap.wrap(
        error.get_message(), WIDTH, initial_indent='  × ',
        subsequent_indent='  │ ', break_long_words=False,
        break_on_hyphens=False,
    ) or ['  ×']

    if first is None:
        help_text = error.get_help()
        if help_text:
            output.extend(_help_lines(help_text))
        return '\n'.join(output) + '\n'

    first_line = max(0, min(by_line) - CONTEXT_LINES)
    last_line = min(len(lines) - 1, max(by_line) + CONTEXT_LINES)
    # The empty string after a trailing newline is not a line of its own.
    if last_line == len(lines) - 1 and last_line not in by_line and not lines[last_line]:
        last_line -= 1
    gutter = len(str(last_line + 1))
    margin = ' ' * (gutter + 2)

    if name is not None or len(lines) > 1:
        location = '%d:%d' % (first[1] + 1, first[2] + 1)
        if name is not None:
            location = '%s:%s' % (name, location)
        output.append('%s╭─[%s]' % (margin, location))
    else:
        output.append('%s╭────' % margin)

    for line in range(first_line, last_line + 1):
        output.append(' %s │ %s' % (str(line + 1).rjust(gutter), lines[line]))
        if line not in by_line:
            continue
        underline, anchors = _underline(sorted(by_line[line]))
        output.append('%s· %s' % (margin, underline))
        for row in _label_rows(anchors):
            output.append('%s· %s' % (margin, row))

    output.append('%s╰────' % margin)

    help_text = error.get_help()
    if help_text:
        output.extend(_help_lines(help_text))
    return '\n'.join(output) + '\n'


def _help_lines(help_text):
    first, *rest = help_text.split('\n')
    return ['  help: %s' % first] + ['        %s' % line for line in rest]
