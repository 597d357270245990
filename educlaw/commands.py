"""Slash commands: definitions, registry and dispatch."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Callable, Optional

ReplyFunc = Callable[[str], None]


@dataclass
class Request:
    """Execution input for a command."""

    text: str = ""
    session_id: str = ""
    actor_id: str = ""
    actor_type: str = ""
    reply: Optional[ReplyFunc] = None


@dataclass
class Runtime:
    """Application state available to command handlers.

    ``show_skill`` returns the skill text or ``None`` when it is unknown;
    ``clear_history`` raises on failure.
    """

    list_definitions: Optional[Callable[[], "list[Definition]"]] = None
    get_model_info: Optional[Callable[[], "tuple[str, str]"]] = None
    list_skills: Optional[Callable[[], "list[str]"]] = None
    show_skill: Optional[Callable[[str], Optional[str]]] = None
    clear_history: Optional[Callable[[str], None]] = None


Handler = Callable[[Request, Optional[Runtime]], None]


@dataclass
class Definition:
    """A single slash command."""

    name: str
    description: str
    usage: str
    handler: Handler

    def effective_usage(self) -> str:
        """The usage string, defaulting to ``/name``."""
        return self.usage or f"/{self.name}"


def normalize(name: str) -> str:
    """Normalise a command name: drop a leading slash, trim and lower-case."""
    return name.removeprefix("/").strip().lower()


class Registry:
    """Commands stored by normalised name."""

    def __init__(self, defs: list[Definition]) -> None:
        self._defs = list(defs)
        self._index = {normalize(d.name): position for position, d in enumerate(self._defs)}

    def definitions(self) -> list[Definition]:
        """A copy of all registered definitions, in order."""
        return list(self._defs)

    def lookup(self, name: str) -> Optional[Definition]:
        """Find a definition by name, or ``None``."""
        position = self._index.get(normalize(name))
        return None if position is None else self._defs[position]


@dataclass
class ExecuteResult:
    """Outcome of command dispatch."""

    handled: bool = False
    command: str = ""
    error: Optional[Exception] = None


class Executor:
    """Dispatches slash commands to their handlers."""

    def __init__(self, registry: Registry, runtime: Optional[Runtime]) -> None:
        self._registry = registry
        self._runtime = runtime

    def execute(self, request: Request) -> ExecuteResult:
        """Run the command named in ``request.text``, if it is a known one."""
        text = request.text.strip()
        if not text.startswith("/"):
            return ExecuteResult()
        fields = text.split()
        if not fields:
            return ExecuteResult()
        definition = self._registry.lookup(fields[0])
        if definition is None:
            return ExecuteResult()
        if request.reply is None:
            request = dataclasses.replace(request, reply=lambda _text: None)
        try:
            definition.handler(request, self._runtime)
        except Exception as exc:  # handler failures are reported, not raised
            return ExecuteResult(handled=True, command=definition.name, error=exc)
        return ExecuteResult(handled=True, command=definition.name)


def _reply(request: Request, text: str) -> None:
    assert request.reply is not None
    request.reply(text)


def _help(request: Request, runtime: Optional[Runtime]) -> None:
    defs = builtins()
    if runtime is not None and runtime.list_definitions is not None:
        defs = runtime.list_definitions()
    lines = ["Available commands:"]
    lines.extend(f"- {d.effective_usage()}: {d.description}" for d in defs)
    _reply(request, "\n".join(lines))


def _list(request: Request, runtime: Optional[Runtime]) -> None:
    if runtime is None or runtime.list_skills is None:
        _reply(request, "Listing skills is unavailable.")
        return
    skills = runtime.list_skills()
    if not skills:
        _reply(request, "No skills available.")
        return
    _reply(request, "Available skills:\n- " + "\n- ".join(skills))


_SHOW_USAGE = "Usage: /show model | /show skill <name>"


def _show(request: Request, runtime: Optional[Runtime]) -> None:
    fields = request.text.split()
    if len(fields) < 2:
        _reply(request, _SHOW_USAGE)
        return
    what = fields[1].lower()
    if what == "model":
        if runtime is None or runtime.get_model_info is None:
            _reply(request, "Model info is unavailable.")
            return
        model, provider = runtime.get_model_info()
        _reply(request, f"Current model: {model}\nProvider: {provider}")
    elif what == "skill":
        if len(fields) < 3:
            _reply(request, "Usage: /show skill <name>")
            return
        if runtime is None or runtime.show_skill is None:
            _reply(request, "Skill details are unavailable.")
            return
        content = runtime.show_skill(fields[2])
        if content is None:
            _reply(request, f"Skill {fields[2]} not found.")
            return
        _reply(request, content)
    else:
        _reply(request, _SHOW_USAGE)


def _clear(request: Request, runtime: Optional[Runtime]) -> None:
    if runtime is None or runtime.clear_history is None:
        _reply(request, "Clear history is unavailable.")
        return
    if not request.session_id:
        _reply(request, "No active session to clear.")
        return
    try:
        runtime.clear_history(request.session_id)
    except Exception as exc:
        _reply(request, f"Failed to clear chat history: {exc}")
        return
    _reply(request, "Chat history cleared.")


def builtins() -> list[Definition]:
    """The slash commands supported by the web app."""
    return [
        Definition("help", "Show available slash commands", "/help", _help),
        Definition("list", "List available skills", "/list", _list),
        Definition("show", "Show model info or a skill description", _SHOW_USAGE.removeprefix("Usage: "), _show),
        Definition("clear", "Clear the current session history", "/clear", _clear),
    ]