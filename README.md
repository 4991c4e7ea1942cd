# ohmylimit

Building blocks for working with a Codex app-server session through a
translation layer. You write a prompt in Korean. It is translated into compact
English before it reaches the coding agent, so fewer tokens count against your
usage limits.

## What is inside

- `ohmylimit.config`: the dataclasses `AppConfig`, `TranslationConfig` and
  `PrivacyConfig`. `AppConfig.load_or_default(path)` reads a TOML file. If the
  file is missing it returns the defaults. `AppConfig.save(path)` writes the
  file and creates its parent directories. `config_dir()`, `config_file()` and
  `env_file()` return `$HOME/.oh-my-limit`, `config.toml` inside it and `.env`
  inside it.
- `ohmylimit.env_file`: reads and updates simple `KEY=value` files.
  - `load_env_file(path)` returns a dict. A missing file gives an empty dict.
  - `parse_env_file(text)` parses file contents.
  - `save_env_value(path, key, value)` rewrites the file sorted by key.
  - `quote_env_value(value)` quotes a value unless it holds only ASCII
    letters, digits, `_`, `-` and `.`.
- `ohmylimit.tokens`: `count_whitespace_tokens(text)`.
- `ohmylimit.translation`:
  - the request, response and usage dataclasses, and `TranslationDirection`;
  - `TranslationProviderKind`, whose `parse()` accepts aliases such as `off`,
    `local` and `remote-openai-compatible`;
  - `TranslatorConfig`, whose `timeout` is in seconds;
  - the `Translator` base class and the pass-through `NoopTranslator`;
  - `system_prompt`, `user_prompt`, `validate_non_empty_translation`, and
    `TranslationError`.
- `ohmylimit.providers`: async HTTP translators built on `httpx`.
  - `OllamaTranslator` calls `/api/chat` and has the default base URL
    `http://localhost:11434`.
  - `LocalOpenAiCompatibleTranslator` calls `/chat/completions` and has the
    default base URL `http://localhost:1234/v1`.
  - `RemoteOpenAiCompatibleTranslator` calls the OpenAI Responses API with a
    structured `translated_text` output.
  - `build_translator(config)` picks one of these from a `TranslatorConfig`.
- `ohmylimit.transport`: `StdioJsonlTransport`, which exchanges JSON lines
  with a child process. By default that process is `codex app-server --listen
  stdio://`. Failures raise `AppServerError`.
- `ohmylimit.appserver`: `AppServerClient`, with methods for initialize,
  account, thread, turn, review, compact and model-list requests.
  `wait_for_turn_completed(turn_id)` collects the agent's answer.
  `run_prompt(options)` runs one prompt from start to finish.
- `ohmylimit.wrapping`: `Span`, `Line` and `WrapOptions`.
  - `word_wrap_line`, `adaptive_wrap_line` and `adaptive_wrap_lines` wrap by
    terminal display width, first fit.
  - `adaptive_wrap_line` and `adaptive_wrap_lines` never break words on a line
    that holds something URL-like.
  - `is_url_like_token` tests a single token.
  - `usable_content_width` gives the width left after reserved columns.
- `ohmylimit.status`: strings and values for a status display.
  - `format_token_count`, `limit_color`, `model_summary`,
    `translator_source_label` and `codex_source_label`;
  - `limit_gauge_title` and `limit_fill_width`;
  - `footer_status_line`.
- `ohmylimit.slash_commands`: `SlashCommand`, `SlashCommandPopup` (filtering
  and selection), `slash_filter` and `default_commands`.
- `ohmylimit.translator_picker`: `TranslatorPicker`, a state machine for
  choosing a translation provider and entering an OpenAI API key. It returns
  `TranslatorPickerAction` values. `normalized_api_key` is also here.

## What it does not do

The package has no command-line entry point and no interactive terminal
screen. The slash-command, picker, wrapping and status modules hold only the
state and text logic a front end would use; nothing draws them. Nothing
dispatches slash commands or feeds a typed prompt through translation into a
turn. Nothing stores sessions, reports or a translation cache.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Example

```python
import asyncio

from ohmylimit.providers import build_translator
from ohmylimit.translation import (
    TranslationDirection,
    TranslationProviderKind,
    TranslationRequest,
    TranslatorConfig,
)

config = TranslatorConfig(provider=TranslationProviderKind.parse("ollama"), timeout=30.0)
translator = build_translator(config)
response = asyncio.run(
    translator.translate(
        TranslationRequest(TranslationDirection.KOREAN_TO_ENGLISH, "테스트를 실행해줘")
    )
)
print(response.text)
```

To run a single prompt against the Codex app-server, the `codex` binary must
be on your `PATH`:

```python
import asyncio
from pathlib import Path

from ohmylimit.appserver import RunOptions, run_prompt

result = asyncio.run(run_prompt(RunOptions(prompt="List the files here", cwd=Path("."))))
print(result.answer)
```