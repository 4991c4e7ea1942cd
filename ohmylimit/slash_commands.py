"""The slash-command completion popup shown above the input box."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class SlashCommand:
    """A command the user can type after a leading slash."""

    name: str
    description: str


_COMMANDS: tuple[SlashCommand, ...] = (
    SlashCommand("translator", "configure prompt translation provider"),
    SlashCommand("model", "choose model and reasoning effort"),
    SlashCommand("status", "show current session status"),
    SlashCommand("account", "refresh Codex account information"),
    SlashCommand("usage", "show current usage and rate limits"),
    SlashCommand("limits", "show current usage and rate limits"),
    SlashCommand("diff", "show repository diff summary"),
    SlashCommand("review", "review current changes"),
    SlashCommand("compact", "compact the current thread"),
    SlashCommand("list", "show recent Codex threads"),
    SlashCommand("resume", "resume a Codex thread"),
    SlashCommand("new", "start a new Codex thread"),
    SlashCommand("clear", "clear the transcript"),
    SlashCommand("interrupt", "interrupt the active Codex turn"),
    SlashCommand("help", "show command help"),
    SlashCommand("exit", "exit Oh My Limit"),
)


def default_commands() -> list[SlashCommand]:
    """All slash commands, in the order the popup lists them."""
    return list(_COMMANDS)


def slash_filter(text: str) -> str | None:
    """The command prefix typed so far, or ``None`` if no popup applies.

    Only the first line counts; it must start with ``/`` and hold no space.
    """
    first_line = text.split("\n", 1)[0].removesuffix("\r") if text else ""
    if not first_line.startswith("/"):
        return None
    rest = first_line[1:]
    if " " in rest:
        return None
    return rest


@dataclass
class SlashCommandPopup:
    """Tracks the filter and selection of the slash-command popup."""

    text: str = ""
    commands: list[SlashCommand] = field(default_factory=default_commands)
    filter: str = field(default="", init=False)
    selected: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        self.update(self.text)

    def update(self, text: str) -> None:
        """Refilter for new input, keeping the selection in range."""
        self.text = text
        self.filter = slash_filter(text) or ""
        count = len(self.filtered())
        if count == 0:
            self.selected = 0
        elif self.selected >= count:
            self.selected = count - 1

    @staticmethod
    def should_show(text: str) -> bool:
        return slash_filter(text) is not None

    def select_previous(self) -> None:
        count = len(self.filtered())
        if count == 0:
            return
        self.selected = (self.selected - 1) % count

    def select_next(self) -> None:
        count = len(self.filtered())
        if count == 0:
            return
        self.selected = (self.selected + 1) % count

    def selected_command(self) -> str | None:
        """Name of the highlighted command, if any match."""
        matches = self.filtered()
        if 0 <= self.selected < len(matches):
            return matches[self.selected].name
        return None

    def completion_text(self) -> str | None:
        """Text to put in the input box when the selection is accepted."""
        command = self.selected_command()
        return None if command is None else f"/{command} "

    def filtered(self) -> list[SlashCommand]:
        """Commands whose names start with the current filter."""
        if not self.filter:
            return list(self.commands)
        return [command for command in self.commands if command.name.startswith(self.filter)]