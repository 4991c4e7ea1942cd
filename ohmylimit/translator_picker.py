"""The modal picker used to choose and configure a translation provider."""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass
from enum import Enum, auto

# Characters Python treats as whitespace that are not Unicode White_Space.
_NOT_WHITE_SPACE = frozenset("\x1c\x1d\x1e\x1f")

_MIN_OPENAI_KEY_BYTES = 40
_MASK_LIMIT = 64


class TranslatorProviderSelection(Enum):
    NOOP = "noop"
    OLLAMA = "ollama"
    LOCAL_OPENAI_COMPATIBLE = "local-openai-compatible"


@dataclass(frozen=True)
class TranslatorPickerAction:
    """What the caller should do after the picker accepted a choice."""

    class Kind(Enum):
        SELECTED_LOCAL = auto()
        SELECTED_OPENAI = auto()
        TEST_OPENAI = auto()
        INVALID_OPENAI_API_KEY = auto()

    kind: TranslatorPickerAction.Kind
    selection: TranslatorProviderSelection | None = None
    api_key: str | None = None

    @classmethod
    def selected_local(cls, selection: TranslatorProviderSelection) -> TranslatorPickerAction:
        return cls(cls.Kind.SELECTED_LOCAL, selection=selection)

    @classmethod
    def selected_openai(cls) -> TranslatorPickerAction:
        return cls(cls.Kind.SELECTED_OPENAI)

    @classmethod
    def test_openai(cls, api_key: str) -> TranslatorPickerAction:
        return cls(cls.Kind.TEST_OPENAI, api_key=api_key)

    @classmethod
    def invalid_openai_api_key(cls) -> TranslatorPickerAction:
        return cls(cls.Kind.INVALID_OPENAI_API_KEY)


class _Stage(Enum):
    CATEGORY = auto()
    LOCAL_PROVIDER = auto()
    REMOTE_PROVIDER = auto()
    OPENAI_API_KEY = auto()


def normalized_api_key(value: str) -> str:
    """``value`` with all whitespace removed."""
    return "".join(
        character
        for character in value
        if not (character.isspace() and character not in _NOT_WHITE_SPACE)
    )


def _is_control(character: str) -> bool:
    return unicodedata.category(character) == "Cc"


class TranslatorPicker:
    """A small state machine walking through provider choices."""

    def __init__(self) -> None:
        self._stage = _Stage.CATEGORY
        self._selected = 0
        self._api_key = ""
        self._has_openai_api_key = False
        self._local_provider_is_root = False
        self._openai_api_key_from_provider_list = False

    @classmethod
    def provider_list(cls, active_provider: str, has_openai_api_key: bool) -> TranslatorPicker:
        """A picker that opens directly on the flat provider list."""
        picker = cls()
        picker._stage = _Stage.LOCAL_PROVIDER
        picker._selected = {"local-openai-compatible": 1, "openai": 2}.get(active_provider, 0)
        picker._has_openai_api_key = has_openai_api_key
        picker._local_provider_is_root = True
        return picker

    @property
    def selected(self) -> int:
        return self._selected

    def _enter(self, stage: _Stage) -> None:
        self._stage = stage
        self._selected = 0
        self._api_key = ""

    def _visible_len(self) -> int:
        if self._stage is _Stage.CATEGORY:
            return 2
        if self._stage is _Stage.LOCAL_PROVIDER:
            return 4 if self._local_provider_is_root else 3
        if self._stage is _Stage.REMOTE_PROVIDER:
            return 1
        return 0

    def select_previous(self) -> None:
        count = self._visible_len()
        if count == 0:
            return
        self._selected = (self._selected - 1) % count

    def select_next(self) -> None:
        count = self._visible_len()
        if count == 0:
            return
        self._selected = (self._selected + 1) % count

    def accept(self) -> TranslatorPickerAction | None:
        """Confirm the current choice; returns an action once one is final."""
        stage = self._stage
        if stage is _Stage.CATEGORY:
            self._enter(_Stage.LOCAL_PROVIDER if self._selected == 0 else _Stage.REMOTE_PROVIDER)
            return None

        if stage is _Stage.LOCAL_PROVIDER:
            if self._selected == 0:
                selection = TranslatorProviderSelection.OLLAMA
            elif self._selected == 1:
                selection = TranslatorProviderSelection.LOCAL_OPENAI_COMPATIBLE
            elif self._selected == 2 and self._local_provider_is_root:
                if self._has_openai_api_key:
                    return TranslatorPickerAction.selected_openai()
                self._openai_api_key_from_provider_list = True
                self._enter(_Stage.OPENAI_API_KEY)
                return None
            else:
                selection = TranslatorProviderSelection.NOOP
            return TranslatorPickerAction.selected_local(selection)

        if stage is _Stage.REMOTE_PROVIDER:
            self._openai_api_key_from_provider_list = False
            self._enter(_Stage.OPENAI_API_KEY)
            return None

        api_key = normalized_api_key(self._api_key)
        if not api_key:
            return None
        if (
            api_key.startswith("sk-")
            and len(api_key.encode("utf-8")) >= _MIN_OPENAI_KEY_BYTES
        ):
            return TranslatorPickerAction.test_openai(api_key)
        return TranslatorPickerAction.invalid_openai_api_key()

    def select_number(self, number: int) -> TranslatorPickerAction | None:
        """Select row ``number`` (counting from 1) and accept it."""
        if number == 0 or number > self._visible_len():
            return None
        self._selected = number - 1
        return self.accept()

    def cancel_or_back(self) -> bool:
        """Go back one stage; returns ``True`` when the picker should close."""
        stage = self._stage
        if stage is _Stage.CATEGORY:
            return True
        if stage is _Stage.REMOTE_PROVIDER:
            self._enter(_Stage.CATEGORY)
            return False
        if stage is _Stage.LOCAL_PROVIDER:
            if self._local_provider_is_root:
                return True
            self._enter(_Stage.CATEGORY)
            return False
        self._enter(
            _Stage.LOCAL_PROVIDER
            if self._openai_api_key_from_provider_list
            else _Stage.REMOTE_PROVIDER
        )
        return False

    def is_api_key_input(self) -> bool:
        return self._stage is _Stage.OPENAI_API_KEY

    def push_api_key_char(self, character: str) -> None:
        if self.is_api_key_input():
            self._api_key += character

    def push_api_key_text(self, text: str) -> None:
        """Append pasted text, dropping control characters."""
        if self.is_api_key_input():
            self._api_key += "".join(c for c in text if not _is_control(c))

    def pop_api_key_char(self) -> None:
        if self.is_api_key_input():
            self._api_key = self._api_key[:-1]

    def title(self) -> str:
        stage = self._stage
        if stage is _Stage.CATEGORY:
            return "Select Translator Type"
        if stage is _Stage.LOCAL_PROVIDER:
            if self._local_provider_is_root:
                return "Select Translation Provider"
            return "Select Local Provider"
        if stage is _Stage.REMOTE_PROVIDER:
            return "Select Remote Provider"
        return "OpenAI API Key"

    def subtitle(self) -> str:
        stage = self._stage
        if stage is _Stage.CATEGORY:
            return "Choose where prompt translation should run."
        if stage is _Stage.LOCAL_PROVIDER:
            if self._local_provider_is_root:
                return "Choose the provider to enable prompt translation."
            return "Local providers keep prompts on this machine."
        if stage is _Stage.REMOTE_PROVIDER:
            return "Remote providers send prompts to an external API."
        return "The key is validated with one API call before the provider is enabled."

    def rows(self) -> list[tuple[str, str]]:
        """The (name, description) rows listed in the current stage."""
        stage = self._stage
        if stage is _Stage.CATEGORY:
            return [
                ("1. Local", "Ollama or local OpenAI-compatible server"),
                ("2. Remote", "OpenAI API"),
            ]
        if stage is _Stage.LOCAL_PROVIDER:
            local = [
                ("1. Ollama", "Use a local Ollama model"),
                ("2. OpenAI compatible", "Use a local /v1/chat/completions server"),
            ]
            if self._local_provider_is_root:
                return [
                    *local,
                    ("3. OpenAI API", "Use the saved or entered OpenAI API key"),
                    ("4. Off", "Disable prompt translation"),
                ]
            return [*local, ("3. Off", "Disable prompt translation")]
        if stage is _Stage.REMOTE_PROVIDER:
            return [("1. OpenAI API", "Use OpenAI Responses API")]
        return []

    def masked_api_key(self) -> str:
        """The entered key shown as asterisks, or a hint when nothing is entered."""
        if not self._api_key:
            return "Paste API key and press Enter"
        return "*" * min(len(self._api_key), _MASK_LIMIT)