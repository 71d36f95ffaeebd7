"""Report exporter for Tracksy.

Generates Word (.docx) documents from duration reports using python-docx.
"""

import logging
import os

from tracksy.core.models import DurationsReport, GroupReport
from tracksy.reporting.formatter import SECTIONS, TextFormatter

logger = logging.getLogger(__name__)


class ReportExporter:
    """Exports a duration report to a formatted Word document (.docx)."""

    def export_report(
        self, report: DurationsReport, output_path: str, heading: str = "Activity Report"
    ) -> str:
        """Generate a .docx file from a duration report.

        Args:
            report: The report to export.
            output_path: File path for the generated .docx file.
            heading: Title shown at the top of the document.

        Returns:
            The path to the generated file.

        Raises:
            ImportError: If python-docx is not installed.
        """
        try:
            from docx import Document
            from docx.enum.text import WD_ALIGN_PARAGRAPH
            from docx.shared import Pt
        except ImportError:
            raise ImportError(
                "python-docx is required for report export. "
                "Install it with: pip install python-docx"
            )

        parent_dir = os.path.dirname(output_path)
        if parent_dir:
            os.makedirs(parent_dir, exist_ok=True)

        doc = Document()

        title_para = doc.add_paragraph()
        title_para.alignment = WD_ALIGN_PARAGRAPH.CENTER
        run = title_para.add_run(heading)
        run.bold = True
        run.font.size = Pt(24)

        for title, attr, label in SECTIONS:
            doc.add_heading(title, level=1)
            groups = getattr(report, attr)
            if not groups:
                doc.add_paragraph("No activity recorded.")
            else:
                self._add_group_table(doc, groups, label)

        doc.save(output_path)
        logger.info("Exported report to %s", output_path)
        return output_path

    def _add_group_table(self, doc, groups: list[GroupReport], label: str) -> None:
        """Add one report section as a table: key, time, share."""
        table = doc.add_table(rows=1 + len(groups), cols=3)
        table.style = "Light Grid Accent 1"

        header_cells = table.rows[0].cells
        header_cells[0].text = label
        header_cells[1].text = "Total Time"
        header_cells[2].text = "Share"

        for i, group in enumerate(groups, start=1):
            row_cells = table.rows[i].cells
            row_cells[0].text = group.key
            row_cells[1].text = TextFormatter.format_duration(group.total_duration)
            row_cells[2].text = f"{group.percentage:.1f}%"

        for cell in table.rows[0].cells:
            for paragraph in cell.paragraphs:
                for run in paragraph.runs:
                    run.bold = True

        doc.add_paragraph()  # spacing after table
