"""Render report rows through a Jinja2 template into the output file."""

import logging
from pathlib import Path
from typing import List, Optional, TextIO, Union

from jinja2 import Environment, FileSystemLoader, StrictUndefined, Template, TemplateNotFound

from stars_report.config import ConfigurationError
from stars_report.domain.repository import ReportRow

logger = logging.getLogger(__name__)

ERROR_BASE_TEMPLATE = "Missing base template"
ERROR_OUTPUT_PATH = "Missing output path"


def load_template(template_path: Union[str, Path]) -> Template:
    """Load a template file, keeping its trailing newline."""
    path = Path(template_path)
    env = Environment(
        loader=FileSystemLoader(str(path.parent)),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )
    return env.get_template(path.name)


def render_rows(stream: TextIO, template: Template, rows: List[ReportRow], partial: bool = False) -> None:
    """Render ``rows`` into ``stream``."""
    stream.write(template.render(rows=rows, partial=partial))


class TemplatePrinter:
    """Writes the rendered report to a file."""

    def __init__(
        self,
        template: Optional[Template] = None,
        output_path: Optional[Union[str, Path]] = None,
        template_path: Optional[Union[str, Path]] = None,
    ):
        """
        Initialize printer.

        Args:
            template: Pre-built template. Loaded from ``template_path`` if None.
            output_path: File the report is written to
            template_path: Template file used when ``template`` is None

        Raises:
            ConfigurationError: If no template or output path is given
        """
        if template is None and template_path:
            try:
                template = load_template(template_path)
            except TemplateNotFound as e:
                raise ConfigurationError(f"Template not found: {template_path}") from e
        if template is None:
            raise ConfigurationError(ERROR_BASE_TEMPLATE)
        if not output_path:
            raise ConfigurationError(ERROR_OUTPUT_PATH)

        self.template = template
        self.output_path = Path(output_path)

    def print_rows(self, rows: List[ReportRow], partial: bool = False) -> Path:
        """
        Replace the output file with the rendered report.

        Returns:
            Path of the written file
        """
        with open(self.output_path, "w", encoding="utf-8") as output:
            render_rows(output, self.template, rows, partial=partial)
        logger.info(f"Wrote {len(rows)} rows to {self.output_path}")
        return self.output_path
