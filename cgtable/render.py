"""
Human-readable output: a plotly HTML table, a plain-text terminal table, and a
MathJax page for multi-state decompositions.
"""
from __future__ import annotations
import pathlib
import plotly.graph_objects as go
from .halfint import format_half_integer
from .misc import gen_table_fmt
from .multi import Decomposition
from .table import Table

def_show_config = dict(
    displayModeBar = True,
    displaylogo = False,
)

header_fill = "#eaeaea"
heading_fill = "#ffd966"

def _labels(table: Table) -> list[str]:
    return [f"j={format_half_integer(j)}" for j in table.j_values()]

def table_rows(table: Table, floats: bool=False, precision: int=6) \
    -> list[(list[str], bool)]:
    """
    Flatten `table.sections()` into rows of strings `[m, m1, m2, values...]`,
    each paired with whether its section starts a new heading block. Missing
    values (j < |m|) are left blank.
    """
    ncols = len(table.columns)
    rows = list()
    for section in table.sections():
        for k, row in enumerate(section.rows):
            if floats:
                values = [f"{v.value():.{precision}f}" for v in row.values]
            else:
                values = [str(v) for v in row.values]
            values += [""] * (ncols - len(values))
            rows.append((
                [
                    format_half_integer(section.m) if k == 0 else "",
                    format_half_integer(row.m1),
                    format_half_integer(row.m2),
                ] + values,
                section.print_heading and k == 0,
            ))
    return rows

def text_table(table: Table, floats: bool=False, precision: int=6) -> str:
    """
    Render the whole table for a terminal. Values are the signed squares
    `sign(c) c^2` unless `floats` is set.
    """
    labels = ["m", "m1", "m2"] + _labels(table)
    rows = table_rows(table, floats, precision)
    widths = [
        max([len(label)] + [len(r[k]) for r, _ in rows])
        for k, label in enumerate(labels)
    ]
    head, fmt = gen_table_fmt(
        [(label, "s>", {"l": w}) for label, w in zip(labels, widths)])
    title = (
        f"j1 = {format_half_integer(table.canonical_twoj1)},"
        f" j2 = {format_half_integer(table.canonical_twoj2)}"
    )
    lines = [title, head]
    for r, _ in rows:
        lines.append(fmt.format(*r))
    return "\n".join(lines)

def table_figure(table: Table, floats: bool=False, precision: int=6) \
    -> go.Figure:
    labels = ["m", "m1", "m2"] + _labels(table)
    rows = table_rows(table, floats, precision)
    columns = [[r[k] for r, _ in rows] for k in range(len(labels))]
    fills = [heading_fill if heading else "white" for _, heading in rows]
    fig = go.Figure(
        data=[
            go.Table(
                header=dict(
                    values=[f"<b>{label}</b>" for label in labels],
                    fill_color=header_fill,
                    align="center",
                ),
                cells=dict(
                    values=columns,
                    fill_color=[fills] * len(labels),
                    align="right",
                ),
            )
        ]
    )
    fig.update_layout(
        title=(
            "Clebsch-Gordan coefficients, sign(c) c<sup>2</sup>:"
            f" j1 = {format_half_integer(table.canonical_twoj1)},"
            f" j2 = {format_half_integer(table.canonical_twoj2)}"
        ),
    )
    return fig

def write_table_html(table: Table, outfile: pathlib.Path,
        config: dict[str, ...]=None, floats: bool=False) -> pathlib.Path:
    outfile = pathlib.Path(outfile)
    table_figure(table, floats).write_html(
        str(outfile),
        config=def_show_config if config is None else config,
        include_plotlyjs="cdn",
    )
    return outfile

multi_template = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>multi-angular decomposition</title>
<script src="https://cdn.jsdelivr.net/npm/mathjax@3/es5/tex-mml-chtml.js"></script>
</head>
<body>
$$
\\begin{{align*}}
{body}
\\end{{align*}}
$$
</body>
</html>
"""

def multi_html(decomp: Decomposition) -> str:
    return multi_template.format(body=decomp.latex())

def write_multi_html(decomp: Decomposition, outfile: pathlib.Path) \
    -> pathlib.Path:
    outfile = pathlib.Path(outfile)
    outfile.write_text(multi_html(decomp), encoding="utf-8")
    return outfile
