"""
Built-in console commands.

`build_commands` returns the command list for one console engine. Handlers
are closures over the engine so they can reach its stores and games; they
receive the flattened argument list and return text (or a coroutine that
yields text).
"""

import asyncio
import base64
import binascii
import html
import json
import logging
import platform
import shutil
import string
import time
from datetime import date, datetime
from typing import TYPE_CHECKING, List, Optional
from urllib.parse import quote, unquote

import requests
from rich.markup import escape

from dev_console import __version__
from dev_console.console import tools
from dev_console.console.errors import GameError, UsageError
from dev_console.console.parsing import parse_argv
from dev_console.console.registry import Command
from dev_console.games.trivia import format_answer, format_question

if TYPE_CHECKING:
    from dev_console.console.engine import DevConsole

logger = logging.getLogger(__name__)

FETCH_PREVIEW_CHARS = 1000


def _format_duration(seconds: float) -> str:
    seconds = int(seconds)
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    parts = []
    if hours:
        parts.append(f"{hours}h")
    if hours or minutes:
        parts.append(f"{minutes}m")
    parts.append(f"{secs}s")
    return " ".join(parts)


def _birthday_in(birth: date, year: int) -> date:
    # Feb 29 birthdays fall on Mar 1 in common years
    try:
        return birth.replace(year=year)
    except ValueError:
        return date(year, 3, 1)


def _option_str(value: object) -> Optional[str]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, list):
        return str(value[-1])
    return str(value)


def build_commands(console: "DevConsole") -> List[Command]:
    """Create the built-in commands bound to the given console."""
    rng = console.rng

    def cmd_help(args: List[str]) -> str:
        if args:
            command = console.registry.get(args[0])
            if command is None:
                raise UsageError(console.dispatcher.unknown_command_message(args[0]))
            usage = f"\nUsage: {command.usage}" if command.usage else ""
            return f"{command.name} - {command.description}{usage}"

        output = "Developer Console - Available Commands:\n\n"
        for category, commands in console.registry.by_category().items():
            output += f"{category}:\n"
            for cmd in commands:
                output += f"  {cmd.name:<14} - {cmd.description}\n"
            output += "\n"
        output += "💡 Tips & Usage:\n"
        output += "  • Use ↑↓ arrows to navigate command history\n"
        output += "  • Press ESC or type \"exit\" to close console\n"
        output += "  • Commands are case-insensitive\n"
        output += "  • Use quotes for multi-word arguments\n"
        output += "  • 'help <command>' shows usage for one command"
        return output

    def cmd_clear(args: List[str]) -> str:
        console.transcript.clear()
        return "Console cleared"

    def cmd_exit(args: List[str]) -> str:
        console.close()
        return "Console closed"

    def cmd_reload(args: List[str]) -> str:
        console.request_reload()
        return "Reloading console..."

    def cmd_search(args: List[str]) -> str:
        query = " ".join(parse_argv(args).positionals).strip()
        if not query:
            raise UsageError("Usage: search <query>")
        needle = query.lower()
        hits = [
            cmd
            for cmd in console.registry
            if needle in cmd.name.lower() or needle in cmd.description.lower()
        ]
        for match in console.matcher.rank(query):
            if match.score >= console.matcher.threshold:
                break
            if match.command not in hits:
                hits.append(match.command)
        if not hits:
            return f"No commands match '{escape(query)}'."
        lines = [f"Commands matching '{query}':"]
        lines.extend(f"  {cmd.name:<14} - {cmd.description}" for cmd in hits[:8])
        return "\n".join(lines)

    def cmd_history(args: List[str]) -> str:
        lines = console.recall.lines
        if not lines:
            return "No commands in history"
        return "\n".join(f"{i + 1:>4}  {line}" for i, line in enumerate(lines))

    def cmd_time(args: List[str]) -> str:
        return datetime.now().strftime("%d/%m/%Y, %H:%M:%S")

    def cmd_date(args: List[str]) -> str:
        now = datetime.now()
        return "\n".join(
            [
                f"ISO: {now.date().isoformat()}",
                f"Long: {now.strftime('%A, %d %B %Y')}",
                f"Short: {now.strftime('%d/%m/%Y')}",
                f"Day of year: {now.timetuple().tm_yday}",
                f"Unix timestamp: {int(now.timestamp())}",
            ]
        )

    def cmd_uptime(args: List[str]) -> str:
        elapsed = time.monotonic() - console.started_at
        return f"Console session uptime: {_format_duration(elapsed)}"

    def cmd_storage(args: List[str]) -> str:
        store = console.store
        action = args[0] if args else ""
        if action == "list":
            keys = store.keys()
            if not keys:
                return "No items in storage"
            return "\n".join(f"{key}: {store.get(key)}" for key in keys)
        if action == "get":
            if len(args) < 2:
                raise UsageError("Usage: storage get <key>")
            value = store.get(args[1])
            return f"{args[1]}: {value}" if value is not None else f'Key "{args[1]}" not found'
        if action == "set":
            if len(args) < 3:
                raise UsageError("Usage: storage set <key> <value>")
            value = " ".join(args[2:])
            store.set(args[1], value)
            return f"Set {args[1]} = {value}"
        if action == "remove":
            if len(args) < 2:
                raise UsageError("Usage: storage remove <key>")
            store.remove(args[1])
            return f"Removed {args[1]}"
        if action == "clear":
            store.clear()
            return "Storage cleared"
        raise UsageError("Usage: storage <list|get|set|remove|clear> [args]")

    def cmd_echo(args: List[str]) -> str:
        return escape(" ".join(args))

    def cmd_reverse(args: List[str]) -> str:
        text = " ".join(args)
        if not text:
            raise UsageError("Usage: reverse <text>")
        return text[::-1]

    def cmd_palindrome(args: List[str]) -> str:
        text = " ".join(args)
        if not text:
            raise UsageError("Usage: palindrome <text>")
        cleaned = "".join(c for c in text.lower() if c.isalnum())
        verdict = "is" if cleaned and cleaned == cleaned[::-1] else "is not"
        return f'"{text}" {verdict} a palindrome'

    def cmd_flip(args: List[str]) -> str:
        return f"🪙 {rng.choice(['Heads', 'Tails'])}!"

    def cmd_dice(args: List[str]) -> str:
        sides = 6
        if args:
            try:
                sides = int(args[0])
            except ValueError:
                raise UsageError("Usage: dice [sides] (sides must be a number)")
        if sides < 2:
            raise UsageError("A die needs at least 2 sides")
        return f"🎲 You rolled a {rng.randint(1, sides)} (1-{sides})"

    def cmd_random(args: List[str]) -> str:
        kind = args[0] if args else "number"
        if kind == "number":
            try:
                low = int(args[1]) if len(args) > 1 else 1
                high = int(args[2]) if len(args) > 2 else 100
            except ValueError:
                raise UsageError("Usage: random number [min] [max]")
            if low > high:
                low, high = high, low
            return f"Random number ({low}-{high}): {rng.randint(low, high)}"
        if kind in ("string", "password"):
            default_length = 8 if kind == "string" else 12
            try:
                length = int(args[1]) if len(args) > 1 else default_length
            except ValueError:
                raise UsageError(f"Usage: random {kind} [length]")
            alphabet = string.ascii_letters + string.digits
            if kind == "password":
                alphabet += "!@#$%^&*"
            value = "".join(rng.choice(alphabet) for _ in range(max(1, length)))
            return f"Random {kind} ({len(value)} chars): {value}"
        if kind == "color":
            return f"Random color: #{rng.randint(0, 0xFFFFFF):06x}"
        raise UsageError("Usage: random <number|string|color|password> [length/min] [max]")

    def cmd_encode(args: List[str]) -> str:
        usage = "Usage: encode <base64|decode-base64|url|decode-url|html|decode-html> <text>"
        if len(args) < 2:
            raise UsageError(usage)
        action, text = args[0], " ".join(args[1:])
        if action == "base64":
            return f"Base64 encoded: {base64.b64encode(text.encode()).decode()}"
        if action == "decode-base64":
            try:
                return f"Base64 decoded: {base64.b64decode(text, validate=True).decode()}"
            except (binascii.Error, UnicodeDecodeError) as e:
                raise UsageError(f"Invalid base64 input: {e}")
        if action == "url":
            return f"URL encoded: {quote(text, safe='')}"
        if action == "decode-url":
            return f"URL decoded: {unquote(text)}"
        if action == "html":
            return f"HTML encoded: {html.escape(text)}"
        if action == "decode-html":
            return f"HTML decoded: {html.unescape(text)}"
        raise UsageError(usage)

    async def cmd_weather(args: List[str]) -> str:
        city = " ".join(parse_argv(args).positionals)
        if not city:
            raise UsageError("Usage: weather <city>")
        url = f"{console.config.weather_api_url.rstrip('/')}/{quote(city)}"
        logger.debug(f"Fetching weather for {city}")
        response = await asyncio.to_thread(
            requests.get,
            url,
            params={"format": "%l: %c %t, %h humidity, wind %w"},
            timeout=console.config.request_timeout,
        )
        response.raise_for_status()
        return response.text.strip()

    def cmd_hangman(args: List[str]) -> str:
        game = console.hangman
        action = args[0].lower() if args else "status"
        rest = args[1:]
        try:
            if action == "start":
                return game.start(rest[0] if rest else None).message
            if action == "guess":
                if len(rest) != 1:
                    raise UsageError("Usage: hangman guess <letter>")
                return game.guess(rest[0]).message
            if action == "word":
                if len(rest) != 1:
                    raise UsageError("Usage: hangman word <word>")
                return game.word(rest[0]).message
            if action == "hint":
                return game.hint().message
            if action == "status":
                return game.status().message
            if action == "quit":
                return game.quit().message
            if action == "categories":
                return "Hangman categories: " + ", ".join(game.categories)
        except GameError as e:
            return str(e)
        raise UsageError("Usage: hangman <start [category]|guess <letter>|word <word>|hint|status|quit|categories>")

    async def cmd_trivia(args: List[str]) -> str:
        parsed = parse_argv(args)
        category = _option_str(parsed.options.get("category"))
        difficulty = _option_str(parsed.options.get("difficulty"))
        positionals = list(parsed.positionals)
        if positionals and category is None:
            category = positionals.pop(0)
        if positionals and difficulty is None:
            difficulty = positionals.pop(0)
        question = await console.trivia.ask(category, difficulty)
        return format_question(question)

    def cmd_trivia_answer(args: List[str]) -> str:
        if len(args) != 1:
            raise UsageError("Usage: trivia-answer <A|B|C|D>")
        try:
            return format_answer(console.trivia.answer(args[0]))
        except GameError as e:
            return str(e)

    def cmd_calc(args: List[str]) -> str:
        expression = " ".join(args)
        if not expression:
            raise UsageError(
                "Usage: calc <expression>\nExamples: calc 2 + 2, calc sqrt(16), calc pow(2,3)"
            )
        return f"{escape(expression)} = {tools.evaluate_expression(expression)}"

    def cmd_age(args: List[str]) -> str:
        text = " ".join(args)
        if not text:
            raise UsageError(f"Usage: age <birth date>\n{tools.AGE_FORMATS_HELP}")
        today = date.today()
        birth = tools.parse_birth_date(text, today)
        years = tools.age_on(birth, today)
        next_birthday = _birthday_in(birth, today.year)
        if next_birthday < today:
            next_birthday = _birthday_in(birth, today.year + 1)
        days = (next_birthday - today).days
        until = "🎂 Happy birthday!" if days == 0 else f"Next birthday in {days} days"
        return f"Born {birth.isoformat()}: you are {years} years old.\n{until}"

    def cmd_lorem(args: List[str]) -> str:
        try:
            count = int(args[0]) if args else 50
        except ValueError:
            raise UsageError("Usage: lorem [word count]")
        return f"Lorem ipsum ({count} words):\n{tools.lorem(count, rng)}."

    def cmd_password(args: List[str]) -> str:
        parsed = parse_argv(args)
        try:
            length = int(parsed.positionals[0]) if parsed.positionals else 16
        except ValueError:
            raise UsageError(
                "Usage: password [length] [--no-symbols] [--no-numbers] "
                "[--no-uppercase] [--no-lowercase]"
            )
        password = tools.generate_password(
            length,
            rng,
            lowercase=not parsed.options.get("no-lowercase"),
            uppercase=not parsed.options.get("no-uppercase"),
            numbers=not parsed.options.get("no-numbers"),
            symbols=not parsed.options.get("no-symbols"),
        )
        return (
            f"Generated password ({length} chars): {escape(password)}\n\n"
            "Security tips:\n"
            "- Don't reuse passwords\n"
            "- Use a password manager\n"
            "- Enable 2FA when possible"
        )

    def cmd_qrcode(args: List[str]) -> str:
        text = " ".join(args)
        if not text:
            raise UsageError("Usage: qrcode <text to encode>")
        return f'QR Code generated for: "{escape(text)}"\nURL: {tools.qr_code_url(text)}'

    def cmd_json_validate(args: List[str]) -> str:
        text = " ".join(args)
        if not text:
            raise UsageError("Usage: json-validate <json string>")
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            return f"❌ Invalid JSON: {escape(str(e))}"
        return f"✅ Valid JSON:\n{escape(json.dumps(data, indent=2))}"

    async def cmd_joke(args: List[str]) -> str:
        category = args[0] if args else None
        joke = await asyncio.to_thread(
            tools.fetch_joke, category, rng, console.config.request_timeout
        )
        return f"😄 Joke ({joke.source}):\n{escape(joke.text)}"

    async def cmd_fetch(args: List[str]) -> str:
        url = args[0] if args else ""
        if not url:
            raise UsageError("Usage: fetch <url>\nExample: fetch https://api.github.com/zen")
        if not url.startswith(("http://", "https://")):
            raise UsageError("Error: URL must start with http:// or https://")
        logger.debug(f"Fetching {url}")
        response = await asyncio.to_thread(
            requests.get,
            url,
            headers={"Accept": "application/json"},
            timeout=console.config.request_timeout,
        )
        if not response.ok:
            return f"❌ HTTP {response.status_code}: {response.reason}"
        if "application/json" in response.headers.get("content-type", ""):
            body = json.dumps(response.json(), indent=2)
        else:
            body = response.text
            if len(body) > FETCH_PREVIEW_CHARS:
                body = body[:FETCH_PREVIEW_CHARS] + "...\n(truncated)"
        return f"✅ Fetched from {escape(url)}:\n{escape(body)}"

    def cmd_info(args: List[str]) -> str:
        size = shutil.get_terminal_size()
        return "\n".join(
            [
                f"Python: {platform.python_version()} ({platform.python_implementation()})",
                f"Platform: {platform.platform()}",
                f"Terminal: {size.columns}x{size.lines}",
                f"Data directory: {console.config.data_dir}",
                f"Storage: {len(console.store.keys())} items",
                f"Commands: {len(console.registry)}",
                f"Transcript: {len(console.transcript)} entries",
            ]
        )

    def cmd_version(args: List[str]) -> str:
        return f"Developer Console {__version__}\nBuilt with rich and prompt-toolkit"

    return [
        Command("help", "Show all available commands", cmd_help, "Basic Commands", "help [command]"),
        Command("clear", "Clear console history", cmd_clear, "Basic Commands"),
        Command("exit", "Close the developer console", cmd_exit, "Basic Commands"),
        Command("reload", "Restart the console session and reopen it", cmd_reload, "Basic Commands"),
        Command("search", "Search commands by name or description", cmd_search, "Basic Commands", "search <query>"),
        Command("history", "Show the submitted command history", cmd_history, "Basic Commands"),
        Command("version", "Show version information", cmd_version, "Basic Commands"),
        Command("info", "Show console and system information", cmd_info, "Basic Commands"),
        Command("time", "Show current time", cmd_time, "Date & Time"),
        Command("date", "Show current date in various formats", cmd_date, "Date & Time"),
        Command("uptime", "Show how long the console session has been running", cmd_uptime, "Date & Time"),
        Command("age", "Calculate age from a birth date", cmd_age, "Date & Time", "age <YYYY-MM-DD|YYYY|MM/DD/YYYY|DD-MM-YYYY>"),
        Command(
            "storage",
            "Manage persistent storage (list, get, set, remove, clear)",
            cmd_storage,
            "Developer Tools",
            "storage <list|get <key>|set <key> <value>|remove <key>|clear>",
        ),
        Command(
            "encode",
            "Encode/decode text (base64, url, html)",
            cmd_encode,
            "Developer Tools",
            "encode <base64|decode-base64|url|decode-url|html|decode-html> <text>",
        ),
        Command("calc", "Evaluate a math expression", cmd_calc, "Developer Tools", "calc <expression>", raw_args=True),
        Command(
            "json-validate",
            "Validate and pretty-print JSON input",
            cmd_json_validate,
            "Developer Tools",
            "json-validate <json string>",
            raw_args=True,
        ),
        Command("echo", "Print the given text", cmd_echo, "Text Tools", "echo <text>"),
        Command("reverse", "Reverse any text", cmd_reverse, "Text Tools", "reverse <text>"),
        Command("palindrome", "Check if a word or phrase is a palindrome", cmd_palindrome, "Text Tools", "palindrome <text>"),
        Command("lorem", "Generate lorem ipsum placeholder text", cmd_lorem, "Text Tools", "lorem [word count]"),
        Command("qrcode", "Generate a QR code link for any text", cmd_qrcode, "Text Tools", "qrcode <text>"),
        Command(
            "random",
            "Generate random data (number, string, color, password)",
            cmd_random,
            "Random Generators",
            "random <number|string|color|password> [length/min] [max]",
        ),
        Command("flip", "Flip a coin (heads or tails)", cmd_flip, "Random Generators"),
        Command("dice", "Roll a dice (1-6 or custom sides)", cmd_dice, "Random Generators", "dice [sides]"),
        Command(
            "password",
            "Generate a secure password with options",
            cmd_password,
            "Random Generators",
            "password [length] [--no-symbols] [--no-numbers] [--no-uppercase] [--no-lowercase]",
        ),
        Command("weather", "Get real weather information for any city", cmd_weather, "Web & API", "weather <city>"),
        Command(
            "joke",
            "Get a random joke (dad, chuck, programming, pun, ...)",
            cmd_joke,
            "Web & API",
            f"joke [{'|'.join(tools.JOKE_CATEGORIES)}]",
        ),
        Command("fetch", "Make an HTTP GET request to an API", cmd_fetch, "Web & API", "fetch <url>"),
        Command(
            "hangman",
            "Play hangman (start, guess, word, hint, status, quit)",
            cmd_hangman,
            "Games",
            "hangman <start [category]|guess <letter>|word <word>|hint|status|quit|categories>",
        ),
        Command(
            "trivia",
            "Answer a multiple-choice trivia question",
            cmd_trivia,
            "Games",
            "trivia [category] [difficulty]",
        ),
        Command(
            "trivia-answer",
            "Answer the pending trivia question",
            cmd_trivia_answer,
            "Games",
            "trivia-answer <A|B|C|D>",
        ),
    ]
