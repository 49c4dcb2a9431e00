"""
Helpers behind the utility commands: a safe arithmetic evaluator, age
calculation, placeholder text, password and QR code URL generation, and the
joke services.
"""

import ast
import math
import operator
import random
import re
import string
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Union
from urllib.parse import quote

import requests

from dev_console.console.errors import UsageError

Number = Union[int, float]

_BINARY_OPERATORS: Dict[type, Callable[[Any, Any], Any]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}

_UNARY_OPERATORS: Dict[type, Callable[[Any], Any]] = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}

CALC_FUNCTIONS: Dict[str, Callable[..., Number]] = {
    "sqrt": math.sqrt,
    "pow": math.pow,
    "sin": math.sin,
    "cos": math.cos,
    "tan": math.tan,
    "log": math.log,
    "abs": abs,
    "round": round,
    "floor": math.floor,
    "ceil": math.ceil,
}

CALC_CONSTANTS: Dict[str, float] = {"pi": math.pi, "e": math.e}

# exponents above this would stall the event loop
MAX_EXPONENT = 10_000


def _evaluate_node(node: ast.AST) -> Number:
    if isinstance(node, ast.Expression):
        return _evaluate_node(node.body)
    if isinstance(node, ast.Constant) and type(node.value) in (int, float):
        return node.value
    if isinstance(node, ast.Name) and node.id in CALC_CONSTANTS:
        return CALC_CONSTANTS[node.id]
    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPERATORS:
        return _UNARY_OPERATORS[type(node.op)](_evaluate_node(node.operand))
    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPERATORS:
        left = _evaluate_node(node.left)
        right = _evaluate_node(node.right)
        if isinstance(node.op, ast.Pow) and abs(right) > MAX_EXPONENT:
            raise UsageError(f"Exponent too large (max {MAX_EXPONENT})")
        return _BINARY_OPERATORS[type(node.op)](left, right)
    if (
        isinstance(node, ast.Call)
        and isinstance(node.func, ast.Name)
        and node.func.id in CALC_FUNCTIONS
        and not node.keywords
    ):
        args = [_evaluate_node(arg) for arg in node.args]
        return CALC_FUNCTIONS[node.func.id](*args)
    raise UsageError("Error: Invalid characters in expression")


def evaluate_expression(expression: str) -> Number:
    """Evaluate an arithmetic expression without handing it to ``eval``.

    Supports ``+ - * / // % **``, parentheses, ``pi``, ``e`` and the functions
    in CALC_FUNCTIONS.

    Raises:
        UsageError: on syntax errors, unsupported constructs or math errors.
    """
    try:
        tree = ast.parse(expression.strip(), mode="eval")
    except SyntaxError:
        raise UsageError(f"Calculation error: invalid expression '{expression}'")
    try:
        result = _evaluate_node(tree)
    except (ArithmeticError, ValueError, TypeError) as e:
        raise UsageError(f"Calculation error: {e}")
    if isinstance(result, float) and result.is_integer():
        return int(result)
    return result


_ISO_DATE_RE = re.compile(r"(\d{4})-(\d{1,2})-(\d{1,2})")
_US_DATE_RE = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})")
_EU_DATE_RE = re.compile(r"(\d{1,2})-(\d{1,2})-(\d{4})")

AGE_FORMATS_HELP = (
    "Supported formats:\n"
    "  YYYY-MM-DD (e.g., 2000-08-19)\n"
    "  YYYY (e.g., 2000)\n"
    "  MM/DD/YYYY (e.g., 08/19/2000)\n"
    "  DD-MM-YYYY (e.g., 19-08-2000)"
)


def parse_birth_date(text: str, today: date) -> date:
    """Parse a birth date in one of the supported formats."""
    text = text.strip()
    if re.fullmatch(r"\d{4}", text):
        year = int(text)
        if year < 1900 or year > today.year:
            raise UsageError(
                f"Invalid year: {year}. Please enter a year between 1900 and {today.year}."
            )
        return date(year, 1, 1)

    match = _ISO_DATE_RE.fullmatch(text)
    if match:
        year, month, day = (int(g) for g in match.groups())
    else:
        match = _US_DATE_RE.fullmatch(text)
        if match:
            month, day, year = (int(g) for g in match.groups())
        else:
            match = _EU_DATE_RE.fullmatch(text)
            if not match:
                raise UsageError(f"Invalid date format. {AGE_FORMATS_HELP}")
            day, month, year = (int(g) for g in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        raise UsageError("Invalid date. Please check your input.")


def age_on(birth: date, today: date) -> int:
    """Completed years between two dates."""
    if birth > today:
        raise UsageError("Birth date cannot be in the future!")
    years = today.year - birth.year
    if (today.month, today.day) < (birth.month, birth.day):
        years -= 1
    return years


LOREM_WORDS = (
    "lorem ipsum dolor sit amet consectetur adipiscing elit sed do eiusmod tempor "
    "incididunt ut labore et dolore magna aliqua enim ad minim veniam quis nostrud "
    "exercitation ullamco laboris nisi aliquip ex ea commodo consequat duis aute "
    "irure in reprehenderit voluptate velit esse cillum fugiat nulla pariatur "
    "excepteur sint occaecat cupidatat non proident sunt culpa qui officia deserunt "
    "mollit anim id est laborum"
).split()


def lorem(count: int, rng: random.Random) -> str:
    if not 1 <= count <= 500:
        raise UsageError("Word count must be between 1 and 500")
    return " ".join(rng.choice(LOREM_WORDS) for _ in range(count))


PASSWORD_SYMBOLS = "!@#$%^&*()_+-=[]{}|;:,.<>?"


def generate_password(
    length: int,
    rng: random.Random,
    lowercase: bool = True,
    uppercase: bool = True,
    numbers: bool = True,
    symbols: bool = True,
) -> str:
    if not 4 <= length <= 100:
        raise UsageError("Password length must be between 4 and 100 characters")
    alphabet = ""
    if lowercase:
        alphabet += string.ascii_lowercase
    if uppercase:
        alphabet += string.ascii_uppercase
    if numbers:
        alphabet += string.digits
    if symbols:
        alphabet += PASSWORD_SYMBOLS
    if not alphabet:
        raise UsageError("Error: At least one character type must be enabled")
    return "".join(rng.choice(alphabet) for _ in range(length))


QR_CODE_API_URL = "https://api.qrserver.com/v1/create-qr-code/"


def qr_code_url(text: str, size: int = 200) -> str:
    return f"{QR_CODE_API_URL}?size={size}x{size}&data={quote(text, safe='')}"


JOKE_API_URL = "https://v2.jokeapi.dev/joke"
DAD_JOKE_API_URL = "https://icanhazdadjoke.com/"
CHUCK_JOKE_API_URL = "https://api.chucknorris.io/jokes/random"
GEEK_JOKE_API_URL = "https://geek-jokes.sameerkumar.website/api"
GENERAL_JOKE_API_URL = "https://official-joke-api.appspot.com/jokes/random"

# console category -> JokeAPI category
JOKEAPI_CATEGORIES: Dict[str, str] = {
    "any": "Any",
    "programming": "Programming",
    "developer": "Programming",
    "dev": "Programming",
    "misc": "Misc",
    "dark": "Dark",
    "pun": "Pun",
    "spooky": "Spooky",
    "christmas": "Christmas",
}
JOKE_CATEGORIES: List[str] = sorted(
    set(JOKEAPI_CATEGORIES) | {"dad", "chuck", "chucknorris", "geek", "general", "random"}
)

JOKE_BLACKLIST = "nsfw,religious,political,racist,sexist,explicit"


@dataclass(frozen=True)
class Joke:
    text: str
    source: str


def fetch_joke(category: Optional[str], rng: random.Random, timeout: float = 10.0) -> Joke:
    """Blocking fetch of one joke; run it through ``asyncio.to_thread``."""
    category = (category or "random").lower()
    if category == "random":
        category = rng.choice(
            ["dad", "developer", "chuck", "geek", "general", "programming", "misc", "pun", "spooky"]
        )
    if category not in JOKE_CATEGORIES:
        raise UsageError(f"Unknown joke category. Available: {', '.join(JOKE_CATEGORIES)}")

    if category == "dad":
        response = requests.get(
            DAD_JOKE_API_URL, headers={"Accept": "application/json"}, timeout=timeout
        )
        response.raise_for_status()
        return Joke(str(response.json()["joke"]), "dad")

    if category in ("chuck", "chucknorris"):
        response = requests.get(CHUCK_JOKE_API_URL, timeout=timeout)
        response.raise_for_status()
        return Joke(str(response.json()["value"]), "chuck")

    if category == "geek":
        response = requests.get(GEEK_JOKE_API_URL, params={"format": "json"}, timeout=timeout)
        response.raise_for_status()
        return Joke(str(response.json()["joke"]), "geek")

    if category == "general":
        response = requests.get(GENERAL_JOKE_API_URL, timeout=timeout)
        response.raise_for_status()
        data = response.json()
        return Joke(f"{data['setup']}\n{data['punchline']}", "general")

    api_category = JOKEAPI_CATEGORIES[category]
    response = requests.get(
        f"{JOKE_API_URL}/{api_category}",
        params={"blacklistFlags": JOKE_BLACKLIST},
        timeout=timeout,
    )
    response.raise_for_status()
    data = response.json()
    if data.get("error"):
        raise UsageError(f"Joke service error: {data.get('message', 'unknown error')}")
    if data.get("type") == "twopart":
        text = f"{data['setup']}\n{data['delivery']}"
    else:
        text = str(data["joke"])
    return Joke(text, str(data.get("category", api_category)).lower())
