import random
from datetime import date
from unittest.mock import MagicMock

import pytest

from dev_console.console import tools as tools_module
from dev_console.console.errors import UsageError
from dev_console.console.tools import (
    PASSWORD_SYMBOLS,
    age_on,
    evaluate_expression,
    fetch_joke,
    generate_password,
    lorem,
    parse_birth_date,
    qr_code_url,
)


@pytest.mark.parametrize(
    "expression,expected",
    [
        ("2 + 2", 4),
        ("(1 + 2) * 3", 9),
        ("7 / 2", 3.5),
        ("2 ** 10", 1024),
        ("sqrt(16)", 4),
        ("pow(2, 3)", 8),
        ("-abs(-3)", -3),
        ("floor(pi)", 3),
    ],
)
def test_evaluate_expression(expression, expected):
    assert evaluate_expression(expression) == expected


def test_evaluate_expression_returns_ints_for_whole_floats():
    assert isinstance(evaluate_expression("sqrt(16)"), int)


@pytest.mark.parametrize(
    "expression",
    ["__import__('os')", "open('x')", "x + 1", "'a' * 3", "[1, 2]", "sqrt(x=4)"],
)
def test_evaluate_expression_rejects_non_arithmetic(expression):
    with pytest.raises(UsageError, match="Invalid characters"):
        evaluate_expression(expression)


def test_evaluate_expression_math_errors():
    with pytest.raises(UsageError, match="Calculation error: division by zero"):
        evaluate_expression("1 / 0")
    with pytest.raises(UsageError, match="Calculation error"):
        evaluate_expression("sqrt(-1)")
    with pytest.raises(UsageError, match="Calculation error: invalid expression"):
        evaluate_expression("2 +")


def test_evaluate_expression_caps_exponents():
    with pytest.raises(UsageError, match="Exponent too large"):
        evaluate_expression("9 ** 99999999")


TODAY = date(2024, 6, 15)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("2000-08-19", date(2000, 8, 19)),
        ("2000", date(2000, 1, 1)),
        ("08/19/2000", date(2000, 8, 19)),
        ("19-08-2000", date(2000, 8, 19)),
    ],
)
def test_parse_birth_date_formats(text, expected):
    assert parse_birth_date(text, TODAY) == expected


@pytest.mark.parametrize("text", ["yesterday", "2000/08/19", "1850", "2030"])
def test_parse_birth_date_rejects_bad_input(text):
    with pytest.raises(UsageError):
        parse_birth_date(text, TODAY)


def test_parse_birth_date_rejects_impossible_day():
    with pytest.raises(UsageError, match="Invalid date"):
        parse_birth_date("2001-02-30", TODAY)


def test_age_on():
    assert age_on(date(2000, 6, 15), TODAY) == 24
    assert age_on(date(2000, 6, 16), TODAY) == 23
    with pytest.raises(UsageError, match="future"):
        age_on(date(2025, 1, 1), TODAY)


def test_lorem_word_count():
    text = lorem(12, random.Random(1))
    assert len(text.split()) == 12
    assert set(text.split()) <= set(tools_module.LOREM_WORDS)


@pytest.mark.parametrize("count", [0, 501])
def test_lorem_bounds(count):
    with pytest.raises(UsageError, match="between 1 and 500"):
        lorem(count, random.Random(1))


def test_generate_password_respects_options():
    password = generate_password(40, random.Random(3), symbols=False, uppercase=False)
    assert len(password) == 40
    assert all(c.islower() or c.isdigit() for c in password)

    symbols_only = generate_password(
        10, random.Random(3), lowercase=False, uppercase=False, numbers=False
    )
    assert all(c in PASSWORD_SYMBOLS for c in symbols_only)


def test_generate_password_errors():
    with pytest.raises(UsageError, match="between 4 and 100"):
        generate_password(3, random.Random(3))
    with pytest.raises(UsageError, match="At least one character type"):
        generate_password(
            8, random.Random(3), lowercase=False, uppercase=False, numbers=False, symbols=False
        )


def test_qr_code_url_quotes_text():
    url = qr_code_url("hello world&more")
    assert url == (
        "https://api.qrserver.com/v1/create-qr-code/?size=200x200&data=hello%20world%26more"
    )


def _json_response(payload):
    response = MagicMock()
    response.json.return_value = payload
    return response


def test_fetch_dad_joke(monkeypatch):
    get = MagicMock(return_value=_json_response({"joke": "I'm reading about anti-gravity."}))
    monkeypatch.setattr(tools_module.requests, "get", get)

    joke = fetch_joke("dad", random.Random(1))

    assert joke.text == "I'm reading about anti-gravity."
    assert joke.source == "dad"
    assert get.call_args.args[0] == tools_module.DAD_JOKE_API_URL
    assert get.call_args.kwargs["headers"] == {"Accept": "application/json"}


def test_fetch_chuck_joke(monkeypatch):
    get = MagicMock(return_value=_json_response({"value": "Chuck Norris can divide by zero."}))
    monkeypatch.setattr(tools_module.requests, "get", get)

    joke = fetch_joke("CHUCK", random.Random(1))

    assert joke.text == "Chuck Norris can divide by zero."
    assert joke.source == "chuck"


def test_fetch_two_part_programming_joke(monkeypatch):
    payload = {
        "error": False,
        "category": "Programming",
        "type": "twopart",
        "setup": "Why do programmers prefer dark mode?",
        "delivery": "Because light attracts bugs.",
    }
    get = MagicMock(return_value=_json_response(payload))
    monkeypatch.setattr(tools_module.requests, "get", get)

    joke = fetch_joke("dev", random.Random(1))

    assert joke.text == "Why do programmers prefer dark mode?\nBecause light attracts bugs."
    assert joke.source == "programming"
    assert get.call_args.args[0] == "https://v2.jokeapi.dev/joke/Programming"
    assert "nsfw" in get.call_args.kwargs["params"]["blacklistFlags"]


def test_fetch_joke_service_error(monkeypatch):
    payload = {"error": True, "message": "No matching joke found"}
    monkeypatch.setattr(tools_module.requests, "get", MagicMock(return_value=_json_response(payload)))

    with pytest.raises(UsageError, match="No matching joke found"):
        fetch_joke("pun", random.Random(1))


def test_fetch_joke_unknown_category(monkeypatch):
    get = MagicMock()
    monkeypatch.setattr(tools_module.requests, "get", get)

    with pytest.raises(UsageError, match="Unknown joke category"):
        fetch_joke("knock-knock", random.Random(1))
    get.assert_not_called()


def test_fetch_general_joke(monkeypatch):
    payload = {"setup": "Why did the scarecrow win an award?", "punchline": "He was outstanding."}
    get = MagicMock(return_value=_json_response(payload))
    monkeypatch.setattr(tools_module.requests, "get", get)

    joke = fetch_joke("general", random.Random(1))

    assert joke.text == "Why did the scarecrow win an award?\nHe was outstanding."
    assert get.call_args.args[0] == tools_module.GENERAL_JOKE_API_URL


def test_random_joke_picks_a_known_source(monkeypatch):
    get = MagicMock(
        return_value=_json_response(
            {"joke": "j", "value": "j", "setup": "s", "punchline": "p", "delivery": "d"}
        )
    )
    monkeypatch.setattr(tools_module.requests, "get", get)

    joke = fetch_joke(None, random.Random(5))

    assert joke.text
    get.assert_called_once()
