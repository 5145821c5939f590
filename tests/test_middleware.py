from restaurant_ordering.middleware.error_handler import first_message
from restaurant_ordering.middleware.utils import sanitize_data, REDACTED


def test_sanitize_redacts_secrets_and_masks_contacts():
    clean = sanitize_data({
        "email": "admin@example.com",
        "password": "hunter22",
        "order": {"customerPhone": "+92 300 1234567", "items": [{"accessToken": "x"}]},
        "sessionId": "s1",
    })
    assert clean["password"] == REDACTED
    assert clean["email"].endswith(".com")
    assert clean["email"].startswith("*")
    assert clean["order"]["customerPhone"] == "*" * 11 + "4567"
    assert clean["order"]["items"] == [{"accessToken": REDACTED}]
    assert clean["sessionId"] == "s1"


def test_first_message_digs_into_nested_errors():
    assert first_message({"json": {"foodItemId": ["Missing data for required field."]}}) \
        == "Missing data for required field."
    assert first_message({}) is None
    assert first_message("plain") == "plain"
