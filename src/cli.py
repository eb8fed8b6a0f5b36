"""Console front end — upload or live-camera scan, rendered with rich."""
import asyncio
from pathlib import Path
from typing import Optional

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from src.config import Config
from src.constants import (
    DISCLAIMER,
    MSG_ANALYZING,
    MSG_CAMERA_LIVE,
    MSG_CAMERA_PROMPT,
    MSG_EXPORTED,
    MSG_IDLE,
)
from src.imaging.source import ImageSource
from src.presenter import Presenter
from src.report import render_markdown, scan_label
from src.session import SessionController
from src.session_models import SessionSnapshot, SessionState
from src.vision.client import VisionClient
from src.vision.schema import AnalysisResult


def result_panel(result: AnalysisResult, scan_number: int) -> Panel:
    summary = Table.grid(padding=(0, 2))
    summary.add_column(style="dim")
    summary.add_column(style="bold")
    summary.add_row("Imaging type", result.imaging_type)
    summary.add_row("Organ", result.organ_name)

    details = Text()
    for item in result.professional_details:
        details.append("▶ ", style="blue bold")
        details.append(f"{item}\n")

    return Panel(
        Group(
            summary,
            Text(""),
            Text("Findings", style="bold"),
            Text(result.findings),
            Text(""),
            Text("Professional details", style="bold blue"),
            details,
            Text(DISCLAIMER, style="italic yellow"),
        ),
        title=scan_label(scan_number),
        border_style="blue",
    )


class ConsolePresenter(Presenter):

    def __init__(self, console: Console) -> None:
        self._console = console

    async def render(self, snapshot: SessionSnapshot) -> None:
        match snapshot.state:
            case SessionState.IDLE:
                self._console.print(MSG_IDLE, style="dim")
            case SessionState.CAPTURING_LIVE:
                self._console.print(MSG_CAMERA_LIVE, style="bold blue")
            case SessionState.ANALYZING:
                size = len(snapshot.image) if snapshot.image else 0
                self._console.print(f"[bold blue]{MSG_ANALYZING}[/] [dim]({size} bytes)[/]")
            case SessionState.RESULT:
                self._console.print(result_panel(snapshot.result, snapshot.scan_number))
            case SessionState.FAILED:
                self._console.print(Panel(snapshot.error_detail or "", title="Error", border_style="red"))


async def run_upload(controller: SessionController, path: Path) -> SessionSnapshot:
    await controller.image_selected(path)
    return await controller.settle()


async def run_camera(controller: SessionController, console: Console) -> SessionSnapshot:
    await controller.request_camera()
    if controller.state is not SessionState.CAPTURING_LIVE:
        return controller.snapshot()
    answer = await asyncio.to_thread(console.input, MSG_CAMERA_PROMPT)
    match answer.strip().lower():
        case "q":
            await controller.cancel()
        case _:
            await controller.shutter_pressed()
    return await controller.settle()


def write_export(path: Path, snapshot: SessionSnapshot) -> None:
    path.write_text(render_markdown(snapshot.result, snapshot.scan_number), encoding="utf-8")


async def _session(
    command: str,
    controller: SessionController,
    console: Console,
    upload: Optional[Path],
    export: Optional[Path],
) -> SessionSnapshot:
    try:
        match command:
            case "camera":
                snapshot = await run_camera(controller, console)
            case _:
                snapshot = await run_upload(controller, upload)
    except asyncio.CancelledError:
        await controller.close()
        raise
    if export is not None and snapshot.state is SessionState.RESULT:
        write_export(export, snapshot)
        console.print(MSG_EXPORTED % export, style="green")
    return snapshot


def run_console(
    command: str,
    config: Config,
    vision: VisionClient,
    *,
    upload: Optional[Path] = None,
    export: Optional[Path] = None,
) -> int:
    """Run one scan in the terminal. Returns the process exit code."""
    console = Console()
    controller = SessionController(
        vision,
        ImageSource.from_config(config),
        analysis_timeout=config.analysis_timeout,
        presenters=[ConsolePresenter(console)],
    )
    snapshot = asyncio.run(_session(command, controller, console, upload, export))
    return 0 if snapshot.state is SessionState.RESULT else 1
