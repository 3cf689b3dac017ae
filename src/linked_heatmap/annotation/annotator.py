"""Annotator: descriptor components plus per-row action and tooltip strings."""

from __future__ import annotations

from dataclasses import dataclass

import jinja2
import jinja2.meta
import markupsafe

from ..core.table import ObservationTable
from ..utils.logging_utils import get_logger
from .descriptor import SplitSpec

logger = get_logger(__name__)

VALID_ESCAPES = {"html", "none"}

# Template variable that exposes the whole row, for column names that
# are not valid identifiers: {{ row["my column"] }}
ROW_VARIABLE = "row"


@dataclass(frozen=True)
class AnnotatedTable:
    """An ObservationTable augmented with component, action and tooltip columns."""

    table: ObservationTable
    descriptor_column: str
    split_spec: SplitSpec
    component_columns: tuple[str, ...]
    action_column: str
    tooltip_column: str

    @property
    def id_column(self) -> str:
        return self.table.id_column

    @property
    def n_rows(self) -> int:
        return self.table.n_rows

    @property
    def actions(self) -> list[str]:
        return self.table.column(self.action_column).tolist()

    @property
    def tooltips(self) -> list[str]:
        return self.table.column(self.tooltip_column).tolist()

    def reorder(self, positions) -> AnnotatedTable:
        """Return a copy with rows in ``positions`` order."""
        return AnnotatedTable(
            table=self.table.take(positions),
            descriptor_column=self.descriptor_column,
            split_spec=self.split_spec,
            component_columns=self.component_columns,
            action_column=self.action_column,
            tooltip_column=self.tooltip_column,
        )

    def reconstruct_descriptors(self) -> list[str]:
        """Rejoin the component columns into descriptor strings."""
        df = self.table.df
        return [
            self.split_spec.join(rec)
            for rec in df[list(self.component_columns)].to_dict("records")
        ]


class Annotator:
    """Derives structured fields and link strings from a descriptor column.

    Link and tooltip templates are Jinja2 templates rendered once per
    row with every row field (original columns and descriptor
    components) in scope. What the link points to is entirely up to the
    template: a genome browser URL, a file path, a shell command.

    Usage::

        spec = SplitSpec([SplitRule(":", ("chrom", "rest")),
                          SplitRule("-", ("start", "end"))])
        annotated = Annotator.annotate(
            table, "position", spec,
            "https://genome.ucsc.edu/cgi-bin/hgTracks?db=hg19"
            "&position={{ chrom }}:{{ start }}-{{ end }}",
        )
    """

    _env = jinja2.Environment(
        autoescape=False,
        undefined=jinja2.StrictUndefined,
        keep_trailing_newline=True,
    )

    @classmethod
    def annotate(
        cls,
        table: ObservationTable,
        descriptor_column: str,
        split_spec: SplitSpec,
        link_template: str,
        tooltip_template: str | None = None,
        action_column: str = "action",
        tooltip_column: str = "tooltip",
        escape: str = "html",
    ) -> AnnotatedTable:
        """Split ``descriptor_column`` and render the link/tooltip strings.

        Parameters
        ----------
        table : ObservationTable
        descriptor_column : str
            Column holding the composite descriptor (e.g. ``chr1:100-200``).
        split_spec : SplitSpec
            How to split the descriptor into components.
        link_template : str
            Jinja2 template for the per-row action string.
        tooltip_template : str, optional
            Jinja2 template for the tooltip. Defaults to ``"<id> | <descriptor>"``.
        action_column, tooltip_column : str
            Names of the new columns.
        escape : {"html", "none"}
            ``"html"`` escapes the rendered strings so they are safe as
            HTML/SVG attribute values.

        Returns
        -------
        AnnotatedTable
            Row count and row order are unchanged.
        """
        if escape not in VALID_ESCAPES:
            raise ValueError(
                f"Unknown escape mode '{escape}'. Valid: {sorted(VALID_ESCAPES)}"
            )
        descriptors = table.column(descriptor_column)

        new_columns = (*split_spec.components, action_column, tooltip_column)
        if len(set(new_columns)) != len(new_columns):
            raise ValueError(f"Output column names must be distinct: {list(new_columns)}")
        clash = [c for c in new_columns if c in table.columns]
        if clash:
            raise ValueError(
                f"Annotation would overwrite existing columns: {clash}"
            )

        # Split every descriptor before rendering anything
        ids = table.ids
        parsed = [
            split_spec.parse(value, row=row_id, column=descriptor_column)
            for row_id, value in zip(ids, descriptors)
        ]

        fields = set(table.columns) | set(split_spec.components) | {ROW_VARIABLE}
        link = cls._compile(link_template, fields, "link_template")
        if tooltip_template is None:
            tooltip = None
        else:
            tooltip = cls._compile(tooltip_template, fields, "tooltip_template")

        actions: list[str] = []
        tooltips: list[str] = []
        for record, components in zip(table.df.to_dict("records"), parsed):
            context = {**record, **components}
            context[ROW_VARIABLE] = dict(context)
            actions.append(cls._escape(link.render(context), escape))
            if tooltip is None:
                text = f"{record[table.id_column]} | {record[descriptor_column]}"
            else:
                text = tooltip.render(context)
            tooltips.append(cls._escape(text, escape))

        columns = {name: [p[name] for p in parsed] for name in split_spec.components}
        columns[action_column] = actions
        columns[tooltip_column] = tooltips

        logger.info(
            "Annotated %d rows: split '%s' into %s",
            table.n_rows, descriptor_column, list(split_spec.components),
        )
        return AnnotatedTable(
            table=table.with_columns(columns),
            descriptor_column=descriptor_column,
            split_spec=split_spec,
            component_columns=split_spec.components,
            action_column=action_column,
            tooltip_column=tooltip_column,
        )

    @classmethod
    def _compile(cls, source: str, fields: set[str], name: str) -> jinja2.Template:
        """Parse a template and check that every variable it uses exists."""
        try:
            ast = cls._env.parse(source)
        except jinja2.TemplateSyntaxError as exc:
            raise ValueError(f"Invalid {name}: {exc}") from exc
        unknown = jinja2.meta.find_undeclared_variables(ast) - fields
        if unknown:
            raise KeyError(
                f"{name} uses unknown fields {sorted(unknown)}. "
                f"Available: {sorted(fields)}"
            )
        return cls._env.from_string(source)

    @staticmethod
    def _escape(text: str, mode: str) -> str:
        if mode == "html":
            return str(markupsafe.escape(text))
        return text


def annotate(
    table: ObservationTable,
    descriptor_column: str,
    split_spec: SplitSpec,
    link_template: str,
) -> AnnotatedTable:
    """Functional form of :meth:`Annotator.annotate`."""
    return Annotator.annotate(table, descriptor_column, split_spec, link_template)
