"""
Valkompass visual components.

Blue/yellow theme. Renders the question card, the progress header, the
result screen and the debate transcript as rich renderables.
"""

from __future__ import annotations

from rich import box
from rich.align import Align
from rich.console import Group
from rich.panel import Panel
from rich.style import Style
from rich.table import Table
from rich.text import Text

from valkompass.core.analysis import AnalysisResult, party_name
from valkompass.core.models import Question
from valkompass.session.capture import AnswerCapture, AnswerPhase, QuizProgress
from valkompass.session.debate import DebateSession

# =============================================================================
# COLOR THEME
# =============================================================================

VALKOMPASS_THEME = {
    "primary": "#3B82F6",  # Blue - main accent
    "secondary": "#60A5FA",  # Light blue
    "accent": "#FACC15",  # Yellow - highlights
    "success": "#22C55E",  # Green - agreement
    "warning": "#F59E0B",  # Amber - pending / important
    "error": "#EF4444",  # Red - disagreement / errors
    "dim": "#64748B",  # Slate - secondary text
    "white": "#F1F5F9",  # Primary text
}

STYLES = {
    "primary": Style(color=VALKOMPASS_THEME["primary"], bold=True),
    "secondary": Style(color=VALKOMPASS_THEME["secondary"]),
    "accent": Style(color=VALKOMPASS_THEME["accent"], bold=True),
    "success": Style(color=VALKOMPASS_THEME["success"], bold=True),
    "warning": Style(color=VALKOMPASS_THEME["warning"], bold=True),
    "error": Style(color=VALKOMPASS_THEME["error"], bold=True),
    "dim": Style(color=VALKOMPASS_THEME["dim"]),
    "white": Style(color=VALKOMPASS_THEME["white"]),
}

# Answer scale, 0 = no opinion
SCALE_LABELS = {
    0: "Vet ej",
    1: "Helt emot",
    2: "Delvis emot",
    3: "Neutral",
    4: "Delvis för",
    5: "Helt för",
}

QUIZ_KEYS_HELP = (
    "0-5 välj  |  Enter/n nästa  |  p pausa & kommentera  |  x stäng kommentar  |  "
    "i extra viktig  |  b tillbaka  |  q avsluta"
)


def _bar(percent: float, width: int = 30) -> str:
    filled = int(round(percent / 100 * width))
    filled = min(max(filled, 0), width)
    return "#" * filled + "-" * (width - filled)


# =============================================================================
# QUIZ
# =============================================================================


def render_progress(progress: QuizProgress) -> Text:
    """
    Progress header: phase, position and percentage.

    Position is counted against the nominal total even while later questions
    are still being generated.
    """
    text = Text()
    text.append(f"ETAPP {progress.phase}/{progress.phase_count}  ", style=STYLES["primary"])
    text.append(f"Fråga {progress.position} av {progress.total}  ", style=STYLES["white"])
    text.append(f"[{_bar(progress.percent)}] ", style=STYLES["secondary"])
    text.append(f"{progress.percent:.0f}%", style=STYLES["accent"])
    if progress.available < progress.total:
        text.append(f"\n{progress.available} frågor hämtade hittills...", style=STYLES["dim"])
    return text


def render_scale(selected: int | None) -> Text:
    text = Text()
    for value, label in SCALE_LABELS.items():
        style = STYLES["accent"] if value == selected else STYLES["dim"]
        marker = "●" if value == selected else "○"
        text.append(f" {marker} {value} {label} ", style=style)
    return text


def render_question_panel(question: Question, capture: AnswerCapture) -> Panel:
    """
    Create the question card.

    Args:
        question: The current question
        capture: Answer capture, for selection, importance and comment state

    Returns:
        Rich Panel for the current question
    """
    header = Text()
    header.append(f"[{question.category.upper()}]", style=STYLES["primary"])
    if capture.is_important:
        header.append(" ★ EXTRA VIKTIG", style=STYLES["warning"])

    body = Text()
    body.append(question.text, style=Style(color=VALKOMPASS_THEME["white"], bold=True))
    body.append("\n\n")
    body.append(question.explanation, style=STYLES["dim"])
    body.append("\n\n")
    body.append_text(render_scale(capture.selected_value))

    if capture.is_auto_advancing:
        body.append("\n\nGår vidare automatiskt... (p för att pausa)", style=STYLES["warning"])
    elif capture.phase == AnswerPhase.CONFIRMED:
        body.append("\n\nSparat svar", style=STYLES["success"])

    if capture.is_nuancing or capture.comment:
        body.append("\n\nKommentar: ", style=STYLES["secondary"])
        body.append(capture.comment or "(tom)", style=STYLES["white"])

    border = VALKOMPASS_THEME["warning"] if capture.is_important else VALKOMPASS_THEME["primary"]
    return Panel(
        Align.left(body),
        title=header,
        title_align="left",
        border_style=Style(color=border),
        box=box.HEAVY,
        padding=(1, 2),
    )


def render_quiz_screen(capture: AnswerCapture) -> Group:
    question = capture.current_question
    parts: list = [render_progress(capture.progress())]
    if question is not None:
        parts.append(render_question_panel(question, capture))
    parts.append(Text(QUIZ_KEYS_HELP, style=STYLES["dim"]))
    return Group(*parts)


# =============================================================================
# STATUS / ERRORS
# =============================================================================


def render_loading_panel(message: str = "Genererar frågor...") -> Panel:
    return Panel(Text(message, style=STYLES["secondary"]), border_style=STYLES["dim"], box=box.ROUNDED)


def render_error_panel(message: str) -> Panel:
    return Panel(
        Text(message, style=STYLES["white"]),
        title="[bold]Något gick fel[/bold]",
        border_style=Style(color=VALKOMPASS_THEME["error"]),
        box=box.HEAVY,
        padding=(1, 2),
    )


# =============================================================================
# RESULTS
# =============================================================================


def render_match_table(result: AnalysisResult) -> Table:
    table = Table(box=box.SIMPLE_HEAVY, show_header=True, header_style=STYLES["primary"])
    table.add_column("Parti")
    table.add_column("Match", justify="right")
    table.add_column("", min_width=20)
    table.add_column("Varför", overflow="fold")

    for match in result.ranked_matches():
        if match.score >= 70:
            color = VALKOMPASS_THEME["success"]
        elif match.score >= 40:
            color = VALKOMPASS_THEME["warning"]
        else:
            color = VALKOMPASS_THEME["error"]
        table.add_row(
            party_name(match.party),
            Text(f"{match.score}%", style=Style(color=color, bold=True)),
            Text(_bar(match.score, width=20), style=Style(color=color)),
            match.reason,
        )
    return table


def render_compass(result: AnalysisResult) -> Text:
    """Position on the two axes, as text."""
    # Model replies sometimes overshoot the axes
    x = min(max(result.coordinates.x, -100.0), 100.0)
    y = min(max(result.coordinates.y, -100.0), 100.0)
    text = Text()
    text.append("Ekonomisk skala: ", style=STYLES["dim"])
    text.append(f"{'Vänster' if x < 0 else 'Höger'} ({x:+.0f})\n", style=STYLES["white"])
    text.append("Värderingsskala: ", style=STYLES["dim"])
    text.append(f"{'GAL' if y < 0 else 'TAN'} ({y:+.0f})", style=STYLES["white"])
    return text


def render_results(result: AnalysisResult) -> Group:
    """
    Full results screen: summary, party matches, compass, coalitions and
    historical context.
    """
    summary = Panel(
        Text(result.summary, style=STYLES["white"]),
        title="[bold]Din politiska profil[/bold]",
        border_style=Style(color=VALKOMPASS_THEME["primary"]),
        box=box.HEAVY,
        padding=(1, 2),
    )
    parts: list = [summary, render_match_table(result), render_compass(result)]

    if result.category_scores:
        categories = Text("\n")
        for score in result.category_scores:
            categories.append(f"{score.category}: ", style=STYLES["secondary"])
            categories.append(f"{score.score}  ", style=STYLES["accent"])
            categories.append(f"{score.description}\n", style=STYLES["dim"])
        parts.append(categories)

    if result.coalitions:
        coalitions = Text("\nMöjliga regeringar\n", style=STYLES["primary"])
        for coalition in result.coalitions:
            names = " + ".join(party_name(p) for p in coalition.parties)
            coalitions.append(f"{names} ({coalition.total_match}%): ", style=STYLES["white"])
            coalitions.append(f"{coalition.description}\n", style=STYLES["dim"])
        parts.append(coalitions)

    history = result.historical_context
    parts.append(
        Panel(
            Text(history.comparison, style=STYLES["white"]),
            title=f"[bold]I historien: {history.topic}[/bold]",
            border_style=STYLES["dim"],
            box=box.ROUNDED,
        )
    )
    return Group(*parts)


def render_debate(debate: DebateSession) -> Panel:
    text = Text()
    text.append(f"Du tyckte: {debate.context.user_stance}\n", style=STYLES["dim"])
    text.append(f"({debate.context.question_text})\n\n", style=STYLES["dim"])
    for turn in debate.turns:
        if turn.role == "user":
            text.append("Du: ", style=STYLES["secondary"])
        else:
            text.append("Djävulens advokat: ", style=STYLES["error"])
        text.append(f"{turn.content}\n", style=STYLES["white"])
    return Panel(
        text,
        title="[bold]Djävulens advokat[/bold]",
        border_style=Style(color=VALKOMPASS_THEME["error"]),
        box=box.HEAVY,
        padding=(1, 2),
    )
