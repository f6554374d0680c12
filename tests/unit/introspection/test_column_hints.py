import pytest

from introspection.column_hints import fake_data_hint_for, validation_hint_for
from schema import SemanticType


@pytest.mark.parametrize(
    "name,semantic,expected",
    [
        ("email", SemanticType.STRING, "safe_email"),
        ("first_name", SemanticType.STRING, "first_name"),
        ("ip_address", SemanticType.STRING, "ipv4"),
        ("billing_address", SemanticType.STRING, "address"),
        ("avatar_url", SemanticType.STRING, "image_url"),
        ("birth_date", SemanticType.DATE, "date_of_birth"),
        ("is_active", SemanticType.BOOLEAN, "boolean"),
        ("notifications_enabled", SemanticType.INTEGER, "boolean"),
        ("price", SemanticType.DECIMAL, "random_float"),
        ("stock_quantity", SemanticType.INTEGER, "number_between"),
        ("email_verified_at", SemanticType.DATETIME, None),
        ("price", SemanticType.STRING, None),
        ("payload", SemanticType.JSON, None),
    ],
)
def test_fake_data_hint_for(name, semantic, expected):
    """Name patterns only apply to the semantic types they fit."""
    assert fake_data_hint_for(name, semantic) == expected


def test_validation_hint_for_textual_columns_only():
    """Name-based validation rules apply to string and text columns."""
    assert validation_hint_for("contact_email", SemanticType.STRING) == "email|max:255"
    assert validation_hint_for("password", SemanticType.TEXT) == "string|min:8"
    assert validation_hint_for("website_url", SemanticType.STRING) == "url|max:255"
    assert validation_hint_for("email_count", SemanticType.INTEGER) is None
    assert validation_hint_for("title", SemanticType.STRING) is None
