"""Typer CLI application for LearnLoop."""

import asyncio
import base64
import logging
from pathlib import Path
from typing import List, NoReturn, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from learnloop import __version__
from learnloop.agents import evaluate_question, generate_instances, generate_template_structure
from learnloop.ai import MODEL_TIERS, ProviderFactory, available_tiers
from learnloop.config.settings import get_settings
from learnloop.errors import ContentNotFoundError, LearnLoopError
from learnloop.models import (
    CurriculumTag,
    GenerateOptions,
    QuestionTemplate,
    ReviewerType,
    ReviewStatus,
)
from learnloop.services import ReviewOutcome, record_attempt, start_session, submit_review
from learnloop.store import InMemoryStore

app = typer.Typer(
    name="learnloop",
    help="AI-assisted question templates, generation and review",
    add_completion=False,
)

console = Console()
logger = logging.getLogger("learnloop")

# Built once by the callback and shared by every command
_factory: Optional[ProviderFactory] = None


def get_factory() -> ProviderFactory:
    """Get the provider factory created at startup."""
    global _factory
    if _factory is None:
        _factory = ProviderFactory(get_settings())
    return _factory


def load_store() -> InMemoryStore:
    """Load the content store configured by STORE_PATH."""
    return InMemoryStore.load(get_settings().store_path)


def save_store(store: InMemoryStore) -> None:
    """Persist the content store to STORE_PATH."""
    store.save(get_settings().store_path)


def fail(message: str) -> NoReturn:
    """Print an error and exit with status 1."""
    console.print(f"[red]Error:[/red] {message}", style="bold")
    raise typer.Exit(code=1)


def status_style(status: ReviewStatus) -> str:
    """Colour a review status for tables."""
    colour = {
        ReviewStatus.PENDING: "yellow",
        ReviewStatus.APPROVED: "green",
        ReviewStatus.REJECTED: "red",
    }[status]
    return f"[{colour}]{status.value}[/{colour}]"


@app.command()
def tiers() -> None:
    """Show the model tiers in fallback order and which are usable."""
    settings = get_settings()
    usable = {(t.backend, t.model_name) for t in available_tiers(settings.credentials())}

    table = Table(title="Model Tiers", border_style="cyan")
    table.add_column("Cost", style="cyan", justify="right")
    table.add_column("Provider", style="white")
    table.add_column("Model", style="white")
    table.add_column("Quality", justify="right")
    table.add_column("Available")

    for tier in sorted(MODEL_TIERS, key=lambda t: t.relative_cost):
        available = (tier.backend, tier.model_name) in usable
        table.add_row(
            str(tier.relative_cost),
            tier.backend.value,
            tier.model_name,
            str(tier.expected_quality),
            "[green]yes[/green]" if available else "[dim]no key[/dim]",
        )

    console.print(table)


@app.command()
def ask(
    prompt: str = typer.Argument(..., help="Prompt for the default provider"),
    system: Optional[str] = typer.Option(None, "--system", "-s", help="System instruction"),
) -> None:
    """
    Send a prompt to the provider configured by AI_PROVIDER.

    Example:
        learnloop ask "Explain prime numbers to a Year 7 student"
    """
    try:
        provider = get_factory().get_default()
        options = GenerateOptions(
            system_instruction=system,
            temperature=get_settings().default_temperature,
        )
        text = asyncio.run(provider.generate_text(prompt, options))
    except LearnLoopError as e:
        fail(str(e))

    console.print(Panel(text, title=repr(provider), border_style="cyan"))


@app.command()
def structure(
    topic: Optional[str] = typer.Option(None, "--topic", "-t", help="Topic of the template"),
    image: Optional[Path] = typer.Option(
        None,
        "--image",
        "-i",
        help="PNG of an example question",
        exists=True,
        dir_okay=False,
    ),
    max_attempts: int = typer.Option(
        3,
        "--max-attempts",
        help="Maximum number of model tiers to try",
        min=1,
        max=10,
    ),
) -> None:
    """
    Draft a question template with AI and save it as a draft.

    Example:
        learnloop structure -t "Percentage discounts"
    """
    if not topic and image is None:
        fail("Provide --topic or --image")

    image_data = base64.b64encode(image.read_bytes()).decode("ascii") if image else None

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("[cyan]Structuring template...", total=None)

            def on_attempt(tier, attempt):
                progress.update(
                    task,
                    description=f"[cyan]Attempt {attempt} with {tier.model_name}...",
                )

            draft, outcome = asyncio.run(
                generate_template_structure(
                    topic,
                    image_data,
                    factory=get_factory(),
                    max_attempts=max_attempts,
                    on_attempt=on_attempt,
                )
            )
            progress.update(task, description="[green]Template drafted!")
    except LearnLoopError as e:
        fail(str(e))

    template = QuestionTemplate(**draft.model_dump())
    store = load_store()
    asyncio.run(store.insert_template(template))
    save_store(store)

    display_template(template)
    console.print(
        f"\n[green]✓[/green] Saved template [bold]{template.id}[/bold] "
        f"(model {outcome.model_used}, {outcome.attempts_made} attempt(s), "
        f"score {outcome.quality_score})"
    )


@app.command()
def templates(
    include_deleted: bool = typer.Option(
        False,
        "--all",
        help="Include soft-deleted templates",
    ),
) -> None:
    """List question templates."""
    store = load_store()
    items = asyncio.run(store.list_templates(include_deleted=include_deleted))
    if not items:
        console.print("[dim]No templates.[/dim]")
        return

    table = Table(title="Templates", border_style="cyan")
    table.add_column("ID", style="cyan")
    table.add_column("Title", style="white")
    table.add_column("Formula", style="white")
    table.add_column("Approved", justify="right")
    table.add_column("Deleted")

    for template in items:
        approved = asyncio.run(store.count_approved_for_template(template.id))
        table.add_row(
            template.id,
            template.title,
            template.answer_formula or "[dim]AI[/dim]",
            str(approved),
            "[red]yes[/red]" if template.is_deleted else "",
        )

    console.print(table)


@app.command("delete-template")
def delete_template(template_id: str = typer.Argument(..., help="Template ID")) -> None:
    """Soft-delete a template (it can be restored)."""
    store = load_store()
    if not asyncio.run(store.soft_delete_template(template_id)):
        fail(str(ContentNotFoundError("template", template_id)))
    save_store(store)
    console.print(f"[green]✓[/green] Template {template_id} deleted")


@app.command("restore-template")
def restore_template(template_id: str = typer.Argument(..., help="Template ID")) -> None:
    """Restore a soft-deleted template."""
    store = load_store()
    if not asyncio.run(store.restore_template(template_id)):
        fail(str(ContentNotFoundError("template", template_id)))
    save_store(store)
    console.print(f"[green]✓[/green] Template {template_id} restored")


@app.command()
def generate(
    template_id: str = typer.Argument(..., help="Template ID"),
    count: int = typer.Option(
        5,
        "--count",
        "-n",
        help="Number of questions to generate",
        min=1,
        max=50,
    ),
    variation: Optional[str] = typer.Option(
        None,
        "--variation",
        "-v",
        help="Alternative phrasing of the template",
    ),
) -> None:
    """
    Generate pending questions from a template.

    Example:
        learnloop generate 6f1c... -n 10 -v "A coat costs {price}..."
    """
    store = load_store()
    try:
        batch = asyncio.run(
            generate_instances(
                store,
                template_id,
                factory=get_factory(),
                count=count,
                variation_text=variation,
            )
        )
    except LearnLoopError as e:
        fail(str(e))
    save_store(store)

    table = Table(title="Generated Questions", border_style="green")
    table.add_column("ID", style="cyan")
    table.add_column("Question", style="white")
    table.add_column("Answer", style="white")
    for question in batch.questions:
        table.add_row(question.id, question.question_text, question.calculated_answer or "")
    console.print(table)

    if batch.outcome:
        console.print(
            f"Generated by {batch.outcome.backend_used.value}/{batch.outcome.model_used} "
            f"after {batch.outcome.attempts_made} attempt(s), "
            f"quality score {batch.outcome.quality_score}"
        )
    else:
        console.print("Generated locally from the answer formula")


@app.command()
def questions(
    template_id: Optional[str] = typer.Option(None, "--template", help="Filter by template"),
    status: Optional[ReviewStatus] = typer.Option(
        None,
        "--status",
        "-s",
        help="Filter by review status",
        case_sensitive=False,
    ),
) -> None:
    """List generated questions."""
    store = load_store()
    items = asyncio.run(store.list_questions(template_id=template_id, status=status))
    if not items:
        console.print("[dim]No questions.[/dim]")
        return

    table = Table(title="Questions", border_style="cyan")
    table.add_column("ID", style="cyan")
    table.add_column("Template", style="white")
    table.add_column("Question", style="white")
    table.add_column("Answer", style="white")
    table.add_column("Status")

    for question in items:
        table.add_row(
            question.id,
            question.template_id,
            question.question_text,
            question.calculated_answer or "",
            status_style(question.status),
        )

    console.print(table)


@app.command()
def review(
    question_id: str = typer.Argument(..., help="Question ID"),
    approve: bool = typer.Option(
        ...,
        "--approve/--reject",
        help="Approve or reject the question",
    ),
    reviewer: str = typer.Option("cli", "--reviewer", "-r", help="Reviewer ID"),
    score: Optional[int] = typer.Option(None, "--score", help="Score (1-10)", min=1, max=10),
    feedback: str = typer.Option("", "--feedback", "-f", help="Comments or rejection reason"),
) -> None:
    """
    Approve or reject a pending question.

    Rejecting deletes the question and any variation or template left without
    approved questions.
    """
    store = load_store()
    try:
        outcome = asyncio.run(
            submit_review(
                store,
                question_id,
                reviewer_id=reviewer,
                is_valid=approve,
                reviewer_type=ReviewerType.HUMAN,
                score=score,
                feedback=feedback,
            )
        )
    except LearnLoopError as e:
        fail(str(e))
    save_store(store)

    display_review_outcome(question_id, outcome)


@app.command()
def evaluate(
    question_id: str = typer.Argument(..., help="Question ID"),
    max_attempts: int = typer.Option(
        2,
        "--max-attempts",
        help="Maximum number of model tiers to try",
        min=1,
        max=10,
    ),
) -> None:
    """Let an AI reviewer approve or reject a question."""
    store = load_store()
    try:
        evaluation, outcome = asyncio.run(
            evaluate_question(
                store,
                question_id,
                factory=get_factory(),
                max_attempts=max_attempts,
            )
        )
    except LearnLoopError as e:
        fail(str(e))
    save_store(store)

    table = Table(title="AI Evaluation", show_header=False, border_style="cyan")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Reviewer", outcome.review.reviewer_id)
    table.add_row("Score", str(evaluation.score))
    table.add_row("Solvable", "yes" if evaluation.is_solvable else "no")
    table.add_row("Valid", "yes" if evaluation.is_valid else "no")
    table.add_row("Feedback", evaluation.feedback)
    console.print(table)

    display_review_outcome(question_id, outcome)


@app.command()
def practice(
    student: str = typer.Argument(..., help="Student ID"),
    count: int = typer.Option(10, "--count", "-n", help="Number of questions", min=1, max=50),
    subject: Optional[str] = typer.Option(None, "--subject", help="Curriculum subject"),
    year_group: Optional[str] = typer.Option(None, "--year", help='Year group, e.g. "Year 9"'),
    topics: List[str] = typer.Option(
        [],
        "--topic",
        "-t",
        help="Top-level topic (can specify multiple times)",
    ),
) -> None:
    """
    Start a practice session of approved questions.

    Filtering by curriculum needs --subject, --year and at least one --topic.
    """
    tags = None
    if subject or year_group or topics:
        if not (subject and year_group and topics):
            fail("--subject, --year and --topic must be given together")
        tags = [
            CurriculumTag(subject=subject, year_group=year_group, topic_path=[topic])
            for topic in topics
        ]

    store = load_store()
    session, selected = asyncio.run(start_session(store, student, tags, count))
    save_store(store)

    if not selected:
        console.print("[yellow]No approved questions left to practice.[/yellow]")
        return

    console.print(f"\n[bold cyan]Session {session.id}[/bold cyan]")
    for number, question in enumerate(selected, start=1):
        console.print(f"[cyan]{number}.[/cyan] {question.question_text}  [dim]({question.id})[/dim]")


@app.command()
def answer(
    student: str = typer.Argument(..., help="Student ID"),
    question_id: str = typer.Argument(..., help="Question ID"),
    response: str = typer.Argument(..., help="The student's answer"),
    session_id: Optional[str] = typer.Option(None, "--session", help="Practice session ID"),
    time_spent: float = typer.Option(0.0, "--time", help="Seconds spent", min=0.0),
) -> None:
    """Check a student's answer and update their progress."""
    store = load_store()
    try:
        result = asyncio.run(
            record_attempt(store, student, question_id, response, time_spent, session_id)
        )
    except LearnLoopError as e:
        fail(str(e))
    save_store(store)

    if result.is_correct:
        console.print("[green bold]Correct![/green bold]")
    else:
        console.print(f"[red bold]Incorrect.[/red bold] The answer is {result.correct_answer}")

    progress = asyncio.run(store.list_progress(student))
    if progress:
        table = Table(title="Progress", border_style="cyan")
        table.add_column("Tag", style="cyan")
        table.add_column("Attempts", justify="right")
        table.add_column("Accuracy", justify="right")
        table.add_column("Mastery", style="white")
        for item in progress:
            table.add_row(
                item.curriculum_tag_id,
                str(item.total_attempts),
                f"{item.accuracy:.0%}",
                item.mastery_level.value,
            )
        console.print(table)


@app.command()
def info() -> None:
    """Display information about LearnLoop."""
    settings = get_settings()
    configured = ", ".join(
        backend.value for backend, key in settings.credentials().items() if key
    ) or "none"

    info_text = f"""
[bold cyan]LearnLoop[/bold cyan]
Version: {__version__}

[bold]Agents:[/bold]
  • Structurer Agent - Drafts templates from a topic or image
  • Generator Agent - Instances templates locally or with AI
  • Evaluator Agent - AI review of generated questions

[bold]Review:[/bold]
  • Rejections cascade to emptied variations and templates
  • Every decision is kept as an audit record

[bold]Providers:[/bold] {configured}
[bold]Default provider:[/bold] {settings.ai_provider}
[bold]Store:[/bold] {settings.store_path}
    """
    console.print(Panel(info_text, title="LearnLoop Info", border_style="cyan"))


def display_template(template: QuestionTemplate) -> None:
    """Display a template draft."""
    table = Table(title=template.title, show_header=False, border_style="cyan")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Template", template.template_text)
    for number, variant in enumerate(template.variants, start=1):
        table.add_row(f"Variant {number}", variant)
    table.add_row("Formula", template.answer_formula or "[dim]none (AI instancing)[/dim]")
    table.add_row("Variables", ", ".join(v.name for v in template.variables))
    table.add_row("Concepts", ", ".join(template.concepts))
    for tag in template.curriculum_tags:
        table.add_row("Curriculum", f"{tag.subject} / {tag.year_group} / {' > '.join(tag.topic_path)}")

    console.print()
    console.print(table)


def display_review_outcome(question_id: str, outcome: ReviewOutcome) -> None:
    """Display what a review changed."""
    if not outcome.status_changed and not outcome.deleted_question_ids:
        console.print(
            f"[yellow]Question {question_id} was already {outcome.status.value}; "
            "review recorded.[/yellow]"
        )
        return

    console.print(f"Question {question_id}: {status_style(outcome.status)}")
    for label, ids in (
        ("question", outcome.deleted_question_ids),
        ("variation", outcome.deleted_variation_ids),
        ("template", outcome.deleted_template_ids),
    ):
        for deleted_id in ids:
            console.print(f"  [red]✗[/red] Deleted {label} {deleted_id}")


@app.callback()
def callback(
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
) -> None:
    """
    LearnLoop - AI question templates with cascading review.
    """
    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )
    # Third-party HTTP clients are noisy at INFO
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)

    global _factory
    _factory = ProviderFactory(settings)
    logger.debug("Store: %s, default provider: %s", settings.store_path, settings.ai_provider)


if __name__ == "__main__":
    app()
