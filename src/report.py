"""Plain-text and Markdown rendering of an analysis result."""
from src.constants import APP_NAME, DISCLAIMER, SCAN_LABEL
from src.vision.schema import AnalysisResult


def scan_label(scan_number: int) -> str:
    return SCAN_LABEL % scan_number


def render_text(result: AnalysisResult, scan_number: int) -> str:
    """Chat-sized summary of a result, details in their original order."""
    lines = [
        scan_label(scan_number),
        "",
        f"Imaging type: {result.imaging_type}",
        f"Organ: {result.organ_name}",
        "",
        "Findings:",
        result.findings,
    ]
    if result.professional_details:
        lines += ["", "Professional details:"]
        lines += [f"▶ {item}" for item in result.professional_details]
    return "\n".join(lines)


def render_markdown(result: AnalysisResult, scan_number: int) -> str:
    """Exportable report, the printable form of a Result."""
    details = [f"{i}. {item}" for i, item in enumerate(result.professional_details, start=1)]
    sections = [
        f"# {APP_NAME} — {scan_label(scan_number)}",
        "| | |\n|---|---|\n"
        f"| Imaging type | {result.imaging_type} |\n"
        f"| Organ | {result.organ_name} |",
        f"## Findings\n\n{result.findings}",
        "## Professional details\n\n" + ("\n".join(details) if details else "_None reported._"),
        f"> {DISCLAIMER}",
    ]
    return "\n\n".join(sections) + "\n"
