"""CLI commands for wordquiz.

Commands:
- play: Take an interactive quiz in one of the four modes
- words: Show the vocabulary collection with mastery stats
"""

import random

import typer
from rich.console import Console
from rich.table import Table

from wordquiz.config.app_config import load_app_config
from wordquiz.core.evaluator import AnswerEvaluator
from wordquiz.core.grading_client import GradingClient, GradingEventType
from wordquiz.core.models import GameMode, InsufficientWordsError, Question, SessionState, Word
from wordquiz.core.question_generator import QuestionGenerator
from wordquiz.core.session import SessionController
from wordquiz.core.word_store import JsonWordStore
from wordquiz.llm.client import LLMClient, LLMConfig

app = typer.Typer(
    name="wordquiz",
    help="Quiz yourself on your own vocabulary, with AI-graded sentences.",
    no_args_is_help=True,
)

console = Console()

QUIT_COMMANDS = {":q", ":quit", ":exit"}


class QuitQuiz(Exception):
    """Learner asked to leave the quiz."""

    pass


def _build_controller(
    seed: int | None,
    provider: str | None,
    model: str | None,
) -> SessionController:
    """Wire store, grading client and generator from config."""
    config = load_app_config()
    store = JsonWordStore(config.words_path)
    llm = LLMClient(LLMConfig.from_yaml(), provider=provider, model=model)
    grading = GradingClient(llm, config.grading)
    generator = QuestionGenerator(random.Random(seed), choice_count=config.quiz.choice_count)
    return SessionController(store, AnswerEvaluator(grading), generator)


def _prompt(label: str) -> str:
    raw = typer.prompt(label)
    if raw.strip().lower() in QUIT_COMMANDS:
        raise QuitQuiz()
    return raw


def _ask_choice(question: Question, mode: GameMode) -> Word:
    """Show numbered options and loop until a valid pick."""
    options = question.options
    for idx, option in enumerate(options, 1):
        console.print(f"  {idx}. {Question.option_label(option, mode)}")

    while True:
        raw = _prompt(f"Pick an option (1-{len(options)})")
        try:
            choice = int(raw.strip())
            if 1 <= choice <= len(options):
                return options[choice - 1]
            console.print(f"[yellow]⚠ Must be 1-{len(options)}[/yellow]")
        except ValueError:
            console.print("[yellow]⚠ Enter a number[/yellow]")


def _ask_text(label: str) -> str:
    """Loop until a non-empty answer."""
    while True:
        raw = _prompt(label).strip()
        if raw:
            return raw
        console.print("[yellow]⚠ The answer can't be empty[/yellow]")


def _show_question(controller: SessionController) -> None:
    session = controller.session
    question = controller.question
    mode = session.mode

    console.print(
        f"\n[blue]Question {session.asked}/{session.total}[/blue]"
        f"  [dim]Score: {session.score}[/dim]"
    )
    console.print(mode.instruction)
    console.print(f"[bold]{question.prompt_text(mode)}[/bold]")
    if mode is GameMode.SENTENCE_BUILDER:
        console.print(f'[italic]"{question.target.definition}"[/italic]')


def _stream_grade(controller: SessionController) -> None:
    """Print the remote verdict and feedback as it arrives."""
    console.print("[dim]Evaluating...[/dim]")
    for event in controller.stream_feedback():
        if event.event_type is GradingEventType.NOTICE:
            console.print(f"[yellow]{event.text.strip()}[/yellow]")
        elif event.event_type is GradingEventType.VERDICT:
            if event.is_correct:
                console.print("[bold green]Correct![/bold green]")
            else:
                console.print("[bold red]Needs Improvement[/bold red]")
        elif event.event_type is GradingEventType.CHUNK:
            console.print(event.text, end="", markup=False, highlight=False)
    console.print()
    if controller.feedback is not None and controller.feedback.correct is not None:
        _show_feedback(controller)


def _show_feedback(controller: SessionController) -> None:
    feedback = controller.feedback
    color = "green" if feedback.correct else "red"
    console.print(f"[{color}]{feedback.message}[/{color}]")


@app.command()
def play(
    mode: GameMode = typer.Argument(
        ..., help="Quiz mode: written, mc_def, mc_word, sentence_builder"
    ),
    seed: int | None = typer.Option(
        None, "--seed", help="Random seed for a reproducible question order"
    ),
    provider: str | None = typer.Option(
        None, "-p", "--provider", help="Grading provider: gemini, openai, lmstudio"
    ),
    model: str | None = typer.Option(
        None, "-m", "--model", help="Grading model (overrides config)"
    ),
) -> None:
    """Take an interactive quiz over your word collection.

    Type :q at any prompt to leave the quiz.

    Example:
        wordquiz play mc_def --seed 7
    """
    controller = _build_controller(seed, provider, model)

    try:
        controller.start_session(mode)
    except InsufficientWordsError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[bold]{mode.title}[/bold]  [dim]{controller.session.total} words[/dim]")

    try:
        while controller.state is not SessionState.FINISHED:
            _show_question(controller)
            question = controller.question

            if mode.is_choice:
                answer = _ask_choice(question, mode)
            elif mode is GameMode.SENTENCE_BUILDER:
                answer = _ask_text("Your sentence")
            else:
                answer = _ask_text("Type the word")

            controller.submit_answer(answer)
            if mode.is_remote_graded:
                _stream_grade(controller)
            else:
                _show_feedback(controller)

            controller.advance()
    except QuitQuiz:
        controller.exit()
        console.print("\n[yellow]Quiz abandoned[/yellow]")
        return

    session = controller.session
    console.print("\n[green]✓ Quiz Complete![/green]")
    console.print(f"You scored [bold green]{session.score}[/bold green] out of [bold]{session.total}[/bold]")
    controller.exit()


@app.command()
def words() -> None:
    """List the word collection with mastery stats."""
    config = load_app_config()
    store = JsonWordStore(config.words_path)
    collection = store.get_words()

    if not collection:
        console.print(f"[yellow]No words found in {config.words_path}[/yellow]")
        return

    table = Table(title=f"My List ({len(collection)} words)")
    table.add_column("Word", style="bold")
    table.add_column("POS", style="dim")
    table.add_column("Definition")
    table.add_column("✓", justify="right", style="green")
    table.add_column("✗", justify="right", style="red")
    table.add_column("Accuracy", justify="right")

    for word in collection:
        accuracy = word.stats.accuracy
        table.add_row(
            word.word,
            word.part_of_speech or "",
            word.definition,
            str(word.stats.correct),
            str(word.stats.incorrect),
            "-" if accuracy is None else f"{accuracy:.0%}",
        )

    console.print(table)
