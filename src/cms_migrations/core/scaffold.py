"""Creation of new migration unit files from kind templates."""

from datetime import datetime
from pathlib import Path
from string import Template

from ..utils.logging import LogContext, get_logger
from .exceptions import ScaffoldError, StorageUnavailableError
from .naming import generate_identifier, identifier_to_filename, identifier_to_unit_name

logger = get_logger(__name__, LogContext.SCAFFOLD)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
TEMPLATE_SUFFIX = ".py.tmpl"


def available_kinds() -> list[str]:
    """Kinds a new unit can be created from."""
    return sorted(
        path.name[: -len(TEMPLATE_SUFFIX)]
        for path in TEMPLATES_DIR.glob(f"*{TEMPLATE_SUFFIX}")
    )


def render_unit(kind: str, identifier: str, description: str = "") -> str:
    """Render the source of a new unit."""
    template_path = TEMPLATES_DIR / f"{kind}{TEMPLATE_SUFFIX}"
    if not template_path.is_file():
        raise ScaffoldError(
            f"Not a valid template for creation: {kind}",
            context={"kind": kind, "available": available_kinds()},
        )

    return Template(template_path.read_text()).substitute(
        class_name=identifier_to_unit_name(identifier),
        description=repr(description),
    )


def create_unit_file(
    directory: Path | str,
    description: str = "",
    kind: str = "default",
    now: datetime | None = None,
) -> Path:
    """Write a new unit named after the current time into ``directory``.

    Args:
        directory: Migration storage directory, created if missing.
        description: Human-readable description stored on the class.
        kind: Template to render, one of ``available_kinds()``.
        now: Creation time, defaults to the current time.

    Returns:
        Path of the new file.

    Raises:
        ScaffoldError: Unknown kind, or a unit already exists for this second.
    """
    identifier = generate_identifier(now or datetime.now())
    content = render_unit(kind, identifier, description)

    directory = Path(directory).expanduser()
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StorageUnavailableError(
            f"Could not create migrations directory {directory}: {e}"
        ) from e

    target = directory / identifier_to_filename(identifier)
    try:
        with open(target, "x") as f:
            f.write(content)
    except FileExistsError as e:
        raise ScaffoldError(
            "There's already a migration file for the current time.",
            context={"path": str(target)},
        ) from e

    logger.info(f"Created migration {target.name}", kind=kind, path=str(target))
    return target
