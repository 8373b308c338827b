"""Interactive CLI application."""
import logging
import time
from datetime import date
from typing import Callable, Optional

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from vocab_drill.completion import CompletionReport, complete_session
from vocab_drill.config import Config
from vocab_drill.dashboard import get_dashboard, get_streak_color
from vocab_drill.errors import EmptyCorpus, VocabDrillError
from vocab_drill.logging_config import setup_logging
from vocab_drill.models import QuizMode
from vocab_drill.progression import check_daily_resets, load_stats
from vocab_drill.question_bank import WEAK_WORDS, select_questions, weak_word_count
from vocab_drill.seed import seed_all
from vocab_drill.session import Phase, SessionEngine, SessionFinished, spelling_hint
from vocab_drill.store import DocumentStore
from vocab_drill.users import ensure_user

logger = logging.getLogger(__name__)

console = Console()

EXIT_WORDS = ("q", "menu")

RANGES = [
    (2, "Elementary", "Basic words"),
    (4, "Grade 7", "Everyday conversation"),
    (6, "Grade 8", "Broaden your expressions"),
    (8, "Grade 9", "Up to entrance exam level"),
    (WEAK_WORDS, "Weak words", "Only the words you missed"),
]

MODES = {
    "choice": "Pick the meaning",
    "spelling_easy": "Spell it with hints",
    "spelling_hard": "Spell it from scratch",
}

PHASE_STYLES = {
    Phase.PRACTICE: "yellow",
    Phase.TEST: "blue",
    Phase.REVIEW: "red",
}


class SessionExitRequested(Exception):
    """The user asked to leave the running session."""


def session_prompt(prompt: str, **kwargs) -> str:
    answer = Prompt.ask(prompt, **kwargs)
    if answer.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return answer


def show_welcome(display_name: str):
    console.print(Panel(
        f"[bold]Vocab Drill[/bold]\n[dim]Welcome back, {display_name}[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu(weak_count: int = 0):
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("learn", "Start a session"),
        ("review", f"Drill weak words ({weak_count})"),
        ("dashboard", "Level, streak and mission"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def show_question(engine: SessionEngine):
    question = engine.current_question
    mode = engine.state.mode
    number, total = engine.position
    style = PHASE_STYLES.get(engine.phase, "white")
    if mode is QuizMode.CHOICE:
        body = f"[bold]{question.word}[/bold]"
    else:
        body = f"[bold]{question.meaning}[/bold]"
        if mode is QuizMode.SPELLING_EASY:
            hint = spelling_hint(question.word, full=engine.phase is Phase.PRACTICE)
            body += f"\n[{style}]{hint}[/{style}]"
        elif engine.phase is Phase.PRACTICE:
            body += f"\n[dim]{question.word}[/dim]"
    console.print(Panel(
        body,
        title=f"{engine.phase.value.title()} {number}/{total}",
        border_style=style,
    ))
    if mode is QuizMode.CHOICE:
        for i, choice in enumerate(question.choices, 1):
            console.print(f"  [cyan]{i})[/cyan] {choice}")


def ask_answer(engine: SessionEngine) -> str:
    question = engine.current_question
    if engine.state.mode is QuizMode.CHOICE:
        valid = [str(i) for i in range(1, len(question.choices) + 1)]
        while True:
            answer = session_prompt("\nYour answer").strip()
            if answer in valid:
                return question.choices[int(answer) - 1]
            console.print(f"[red]Choose one of {', '.join(valid)} (or q to quit).[/red]")
    while True:
        answer = session_prompt("\nSpell it").strip()
        if answer:
            return answer


def run_session(engine: SessionEngine, sleep: Callable[[float], None] = time.sleep) -> SessionFinished:
    """Drive the engine until the result phase. Raises SessionExitRequested if abandoned."""
    while not engine.finished:
        phase = engine.phase
        show_question(engine)
        feedback = engine.answer_and_wait(ask_answer(engine), sleep=sleep)
        if feedback is None:
            continue
        if feedback.correct:
            console.print("[green]Correct![/green]\n")
        else:
            console.print(f"[red]Incorrect.[/red] Answer: [green]{feedback.expected}[/green]\n")
        if engine.phase is not phase and not engine.finished:
            console.print(f"[bold]{engine.phase.value.title()} phase[/bold]\n")
    return engine.result


def show_result(finished: SessionFinished, report: Optional[CompletionReport]):
    pct = finished.score / finished.total * 100 if finished.total else 0
    console.print(Panel(
        f"[bold]Score: {finished.score}/{finished.total} ({pct:.0f}%)[/bold]",
        title="Result", border_style="green",
    ))
    if report is None:
        return
    progress = report.progress
    if progress:
        console.print(f"  +{progress.exp_earned} exp  |  Level [bold]{progress.stats.level}[/bold]")
        if progress.leveled_up:
            console.print("  [bold magenta]Level up![/bold magenta]")
        if progress.mission_completed:
            console.print(f"  [bold green]Mission complete: {progress.stats.daily_mission.description}[/bold green]")
    if report.failures:
        console.print(f"[yellow]Some results could not be saved: {', '.join(report.failures)}[/yellow]")


def choose_criterion(config: Config) -> int:
    for i, (tier, label, desc) in enumerate(RANGES, 1):
        console.print(f"  [cyan]{i})[/cyan] {label} [dim]{desc}[/dim]")
    default = next(
        (str(i) for i, (tier, _, _) in enumerate(RANGES, 1) if tier == config.default_tier), "1"
    )
    pick = Prompt.ask("Range", choices=[str(i) for i in range(1, len(RANGES) + 1)], default=default)
    return RANGES[int(pick) - 1][0]


def choose_mode() -> QuizMode:
    for name, desc in MODES.items():
        console.print(f"  [cyan]{name:<14}[/cyan] {desc}")
    return QuizMode(Prompt.ask("Mode", choices=list(MODES), default="choice"))


def cmd_learn(config: Config, store: DocumentStore, criterion: Optional[int] = None,
              sleep: Callable[[float], None] = time.sleep):
    console.print("\n[bold]New Session[/bold]")
    if criterion is None:
        criterion = choose_criterion(config)
    mode = choose_mode()
    default_count = "30" if config.default_count == 30 else "10"
    count = int(Prompt.ask("Number of questions", choices=["10", "30"], default=default_count))

    try:
        questions = select_questions(
            store, criterion, count, user_id=config.user_id, modality=mode.modality,
        )
    except EmptyCorpus as e:
        console.print(f"[yellow]{e}[/yellow]")
        return
    if not questions:
        console.print("[green]Nothing to review! No weak words for this mode.[/green]")
        return

    engine = SessionEngine(
        questions,
        mode=mode,
        correct_delay=config.correct_delay,
        incorrect_delay=config.incorrect_delay,
    )
    started_on = date.today()
    console.print(f"\n[bold]Practice phase[/bold] - {len(questions)} words (q to quit)\n")
    try:
        finished = run_session(engine, sleep=sleep)
    except SessionExitRequested:
        logger.info("Session abandoned at %s", engine.phase.value)
        console.print("[dim]Session abandoned. Nothing was saved.[/dim]")
        return

    report = complete_session(
        store,
        config.user_id,
        finished,
        criterion=criterion,
        mode=mode,
        duration=engine.elapsed_seconds(),
        started_on=started_on,
    )
    show_result(finished, report)


def cmd_review(config: Config, store: DocumentStore, sleep: Callable[[float], None] = time.sleep):
    cmd_learn(config, store, criterion=WEAK_WORDS, sleep=sleep)


def cmd_dashboard(config: Config, store: DocumentStore):
    data = get_dashboard(store, config.user_id)
    console.print(Panel(
        f"[bold]Level {data['level']}[/bold] {data['title']}",
        title="Dashboard", border_style="blue",
    ))

    bar_filled = data["exp_into_level"] // 5
    bar = f"[cyan]{'█' * bar_filled}{'░' * (20 - bar_filled)}[/cyan]"
    console.print(f"\n  Exp: [bold]{data['exp']}[/bold] {bar} {data['exp_to_next']} to next level")

    color = get_streak_color(data["streak"])
    console.print(f"  Streak: [{color}]{data['streak']} day(s)[/{color}]"
                  + ("" if data["studied_today"] else "  [dim](not studied today)[/dim]"))

    table = Table(title="This Week")
    for day, _ in data["week"]:
        table.add_column(day.strftime("%a"), justify="center")
    table.add_row(*["[green]●[/green]" if studied else "[dim]·[/dim]" for _, studied in data["week"]])
    console.print(table)

    mission = data["mission"]
    if mission:
        status = "[green]done[/green]" if mission.completed else f"{mission.progress}/{mission.target}"
        console.print(f"\n  Mission: {mission.description} ({status}, +{mission.reward} exp)")

    console.print(f"\n  Weak words: [bold]{data['weak_words']}[/bold]  |  "
                  f"Correct answers: [bold]{data['total_correct']}[/bold]  |  "
                  f"Study time: [bold]{data['total_study_time'] // 60} min[/bold]  |  "
                  f"Days studied: [bold]{data['days_studied']}[/bold]")


def main():
    config = Config.from_env()
    setup_logging(config.log_level, config.log_dir, console=console)
    store = DocumentStore(config.db_path).init()
    seed_all(store)
    profile = ensure_user(store, config.user_id, config.display_name)
    check_daily_resets(store, config.user_id, load_stats(store, config.user_id))

    show_welcome(profile.display_name)

    while True:
        show_menu(weak_word_count(store, config.user_id))
        choice = Prompt.ask("\n[bold]>[/bold]", default="learn").strip().lower()
        try:
            if choice == "learn":
                cmd_learn(config, store)
            elif choice == "review":
                cmd_review(config, store)
            elif choice == "dashboard":
                cmd_dashboard(config, store)
            elif choice in ("quit", "exit", "q"):
                console.print("[dim]See you tomorrow![/dim]")
                break
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except VocabDrillError as e:
            logger.exception("Command %s failed", choice)
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
