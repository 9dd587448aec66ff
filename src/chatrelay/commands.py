"""
Slash commands for changing settings from the chat input.

``CommandParser`` turns text such as ``/model openai:gpt-4o`` or ``/temp 1.2``
into a command, validating providers, models and ranges against the SDK. The
``CommandHandler`` applies parsed commands through the configuration API and
returns the text to show the user.
"""

from typing import TYPE_CHECKING, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict

from .errors import UnknownProviderError

if TYPE_CHECKING:
    from . import ChatRelay

MIN_TEMPERATURE = 0.0
MAX_TEMPERATURE = 2.0


# --- Commands ---
class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class Clear(_Frozen):
    name: Literal["clear"] = "clear"


class ChangeModel(_Frozen):
    name: Literal["model"] = "model"
    model: str


class ChangeProviderAndModel(_Frozen):
    name: Literal["provider_model"] = "provider_model"
    provider_id: str
    model: str


class ChangeTemperature(_Frozen):
    name: Literal["temperature"] = "temperature"
    temperature: float


class ChangeMaxTokens(_Frozen):
    name: Literal["max_tokens"] = "max_tokens"
    max_tokens: int


class ShowConfig(_Frozen):
    name: Literal["config"] = "config"


class Help(_Frozen):
    name: Literal["help"] = "help"


class Invalid(_Frozen):
    name: Literal["invalid"] = "invalid"
    message: str


Command = Union[
    Clear,
    ChangeModel,
    ChangeProviderAndModel,
    ChangeTemperature,
    ChangeMaxTokens,
    ShowConfig,
    Help,
    Invalid,
]


# --- Results ---
class Message(_Frozen):
    """Text to display to the user."""

    name: Literal["message"] = "message"
    text: str


class ClearHistory(_Frozen):
    """The session should drop its conversation history."""

    name: Literal["clear_history"] = "clear_history"


CommandResult = Union[Message, ClearHistory]

USAGE_MODEL = "Usage: /model <model> or /model <provider>:<model>"
USAGE_TEMPERATURE = "Usage: /temp <value between 0.0 and 2.0>"
USAGE_TOKENS = "Usage: /tokens <positive integer>"


class CommandParser:
    """Parses ``/``-prefixed chat input into commands."""

    def __init__(self, relay: "ChatRelay"):
        self.relay = relay

    def parse(self, text: str) -> Optional[Command]:
        """Returns the command in ``text``, or None if it is not a command."""
        trimmed = text.strip()
        if not trimmed.startswith("/"):
            return None

        name, _, args = trimmed[1:].partition(" ")
        name = name.lower()
        args = args.strip()

        if name == "clear":
            return Clear()
        if name == "model":
            return self._parse_model(args) if args else Invalid(message=USAGE_MODEL)
        if name in ("temp", "temperature"):
            if not args:
                return Invalid(message=USAGE_TEMPERATURE)
            return self._parse_temperature(args)
        if name in ("tokens", "maxtokens"):
            return self._parse_max_tokens(args) if args else Invalid(message=USAGE_TOKENS)
        if name == "config":
            return ShowConfig()
        if name == "help":
            return Help()
        return Invalid(message=f"Unknown command: /{name}. Type /help for a list.")

    def _parse_model(self, args: str) -> Command:
        if ":" not in args:
            provider_id = self.relay.get_configuration().provider_id
            try:
                provider = self.relay.get_provider(provider_id)
            except UnknownProviderError as e:
                return Invalid(message=str(e))
            if args not in provider.models:
                return self._invalid_model(args, provider.display_name, provider.models)
            return ChangeModel(model=args)

        provider_name, _, model = (part.strip() for part in args.partition(":"))
        if not provider_name or not model:
            return Invalid(message=USAGE_MODEL)

        providers = self.relay.get_available_providers()
        wanted = provider_name.lower()
        provider = next(
            (
                p
                for p in providers
                if p.id.lower() == wanted or p.display_name.lower() == wanted
            ),
            None,
        )
        if provider is None:
            available = ", ".join(p.id for p in providers)
            return Invalid(
                message=f"Unknown provider '{provider_name}'. Available: {available}"
            )
        if model not in provider.models:
            return self._invalid_model(model, provider.display_name, provider.models)
        return ChangeProviderAndModel(provider_id=provider.id, model=model)

    def _invalid_model(self, model, provider_name, models) -> Invalid:
        return Invalid(
            message=(
                f"Model '{model}' is not available for {provider_name}. "
                f"Available: {', '.join(models)}"
            )
        )

    def _parse_temperature(self, args: str) -> Command:
        try:
            temperature = float(args)
        except ValueError:
            return Invalid(message=f"Invalid temperature value: {args}")
        if not MIN_TEMPERATURE <= temperature <= MAX_TEMPERATURE:
            return Invalid(message="Temperature must be between 0.0 and 2.0")
        return ChangeTemperature(temperature=temperature)

    def _parse_max_tokens(self, args: str) -> Command:
        try:
            max_tokens = int(args)
        except ValueError:
            return Invalid(message=f"Invalid max tokens value: {args}")
        if max_tokens <= 0:
            return Invalid(message="Max tokens must be a positive integer")
        return ChangeMaxTokens(max_tokens=max_tokens)


class CommandHandler:
    """Executes parsed commands against the SDK configuration."""

    def __init__(self, relay: "ChatRelay", parser: Optional[CommandParser] = None):
        self.relay = relay
        self.parser = parser or CommandParser(relay)

    def handle(self, text: str) -> Optional[CommandResult]:
        """Parses and runs ``text``; returns None when it is not a command."""
        command = self.parser.parse(text)
        if command is None:
            return None
        return self.execute(command)

    def execute(self, command: Command) -> CommandResult:
        if isinstance(command, Clear):
            return ClearHistory()
        if isinstance(command, ChangeModel):
            self.relay.update_configuration(
                lambda config: config.with_changes(model=command.model)
            )
            return Message(text=f"Model changed to {command.model}")
        if isinstance(command, ChangeProviderAndModel):
            self.relay.update_configuration(
                lambda config: config.with_changes(
                    provider_id=command.provider_id, model=command.model
                )
            )
            return Message(
                text=f"Switched to {command.provider_id} with model {command.model}"
            )
        if isinstance(command, ChangeTemperature):
            self.relay.update_configuration(
                lambda config: config.with_changes(temperature=command.temperature)
            )
            return Message(text=f"Temperature set to {command.temperature}")
        if isinstance(command, ChangeMaxTokens):
            self.relay.update_configuration(
                lambda config: config.with_changes(max_tokens=command.max_tokens)
            )
            return Message(text=f"Max tokens set to {command.max_tokens}")
        if isinstance(command, ShowConfig):
            return Message(text=self._describe_config())
        if isinstance(command, Help):
            return Message(text=self._help_text())
        return Message(text=command.message)

    def _describe_config(self) -> str:
        config = self.relay.get_configuration()
        lines = [
            "Current configuration:",
            f"  Provider: {config.provider_id}",
            f"  Model: {config.model}",
            f"  Temperature: {config.temperature}",
            f"  Max tokens: {config.max_tokens}",
        ]
        try:
            provider = self.relay.get_provider(config.provider_id)
        except UnknownProviderError:
            return "\n".join(lines)
        lines.append("")
        lines.append(f"Available models for {provider.display_name}:")
        lines.extend(f"  - {model}" for model in provider.models)
        return "\n".join(lines)

    def _help_text(self) -> str:
        lines = [
            "Available commands:",
            "  /clear - clear the conversation history",
            "  /model <model> or /model <provider>:<model> - change the model",
        ]
        for provider in self.relay.get_available_providers():
            example = provider.models[0] if provider.models else "model-name"
            lines.append(f"      e.g. /model {provider.id}:{example}")
        lines.extend(
            [
                "  /temp <0.0-2.0> - set the temperature",
                "  /tokens <n> - set the maximum response tokens",
                "  /config - show the current configuration",
                "  /help - show this help",
            ]
        )
        return "\n".join(lines)
