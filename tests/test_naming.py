import pytest

from autoqa_export.models.action_record import ElementFingerprint
from autoqa_export.utils.naming import (
    IDENTIFIER_PATTERN,
    NameRegistry,
    deduplicate_fragment,
    generate_meaningful_var_name,
    identifier_for_element,
    identifier_for_text,
    rename_identifier,
    sanitize_variable_name,
    to_camel_case,
)


@pytest.mark.parametrize(
    "value,expected",
    [
        ("account-input", "accountInput"),
        ("login-submit-btn", "loginSubmitBtn"),
        ("user_name_field", "userNameField"),
        ("User Name Field", "userNameField"),
        ("account@input#field", "accountInputField"),
        ("user.name_field", "userNameField"),
        ("AccountInput", "accountInput"),
        ("ACCOUNT", "aCCOUNT"),
        ("input-field-2", "inputField2"),
        ("请输入直播名称", "请输入直播名称"),
        ("账号-输入", "账号输入"),
        ("user-account-账号", "userAccount账号"),
        ("A", "a"),
        ("", ""),
        ("---", ""),
        ("   ", ""),
    ],
)
def test_to_camel_case(value, expected):
    assert to_camel_case(value) == expected


def fp(**kwargs) -> ElementFingerprint:
    return ElementFingerprint(**kwargs)


def test_test_id_has_priority_and_suffix_is_stripped():
    assert generate_meaningful_var_name(fp(test_id="account-input")) == "account"
    assert generate_meaningful_var_name(fp(test_id="login-button")) == "login"
    assert generate_meaningful_var_name(fp(test_id="submit-btn")) == "submit"
    assert generate_meaningful_var_name(fp(test_id="email-field")) == "email"
    assert generate_meaningful_var_name(fp(test_id="USERNAME-INPUT")) == "username"
    assert generate_meaningful_var_name(fp(test_id="user-profile-name-input")) == "userProfileName"
    assert (
        generate_meaningful_var_name(
            fp(test_id="username-input", placeholder="Enter username", text_snippet="Username", id="user-id")
        )
        == "username"
    )


def test_placeholder_lead_ins_are_stripped():
    assert generate_meaningful_var_name(fp(placeholder="Input username")) == "username"
    assert generate_meaningful_var_name(fp(placeholder="Enter your email")) == "email"
    assert generate_meaningful_var_name(fp(placeholder="请输入手机号")) == "手机号"


def test_placeholder_falls_back_to_original_when_stripping_empties_it():
    assert generate_meaningful_var_name(fp(placeholder="请输入")) == "请输入"


def test_lower_priorities():
    assert generate_meaningful_var_name(fp(text_snippet="Save and Create")) == "saveAndCreate"
    assert generate_meaningful_var_name(fp(text_snippet="Click Me", id="button-id")) == "clickMe"
    assert generate_meaningful_var_name(fp(id="user_name")) == "userName"
    assert generate_meaningful_var_name(fp(role="button", tag_name="button")) == "buttonbutton"
    assert generate_meaningful_var_name(fp(tag_name="input")) == "input"
    assert generate_meaningful_var_name(fp()) == "element"
    assert generate_meaningful_var_name(fp(test_id="account"), "3") == "account3"


@pytest.mark.parametrize(
    "value,expected",
    [
        ("7174952", "text7174952"),
        ("频道：7174952", "text7174952"),
        ("频道", "text"),
        ("", "text"),
        ("testAutomationChannel", "testAutomationChannel"),
        ("test-channel", "testchannel"),
        ("Test频道Channel", "TestChannel"),
    ],
)
def test_sanitize_variable_name(value, expected):
    assert sanitize_variable_name(value) == expected


def test_element_identifiers_are_always_valid():
    assert identifier_for_element(fp(text_snippet="同意并登录")) == "element"
    assert identifier_for_element(fp(placeholder="请输入手机号")) == "element"
    assert identifier_for_element(fp(id="123-field")) == "text123Field"
    for fingerprint in (fp(text_snippet="同意 and 登录"), fp(test_id="9-lives"), fp()):
        assert IDENTIFIER_PATTERN.match(identifier_for_element(fingerprint))


def test_registry_claims_numeric_suffixes_from_two():
    registry = NameRegistry(reserved=["page"])
    assert registry.claim("input") == "input"
    assert registry.claim("input") == "input2"
    assert registry.claim("input") == "input3"
    assert registry.claim("page") == "page2"
    assert "input3" in registry


def test_rename_identifier_is_whole_word_and_skips_string_literals():
    code = "  const input = page.getByTestId('input');\n  await expect(input).toHaveCount(1);\n  await expect(inputs).toBeVisible();"
    renamed = rename_identifier(code, "input", "input2")
    assert "const input2 = page.getByTestId('input');" in renamed
    assert "expect(input2).toHaveCount(1)" in renamed
    assert "expect(inputs)" in renamed


def test_deduplicate_fragment_renames_all_references():
    registry = NameRegistry()
    first = "  const account = page.getByTestId('a');\n  await expect(account).toBeVisible();"
    assert deduplicate_fragment(first, registry) == first

    second = deduplicate_fragment(first, registry)
    assert second.startswith("  const account2 = ")
    assert "expect(account2)" in second
    assert "expect(account)" not in second


def test_deduplicate_fragment_leaves_code_without_declarations():
    registry = NameRegistry()
    assert deduplicate_fragment("  await page.goto(baseUrl);", registry) == "  await page.goto(baseUrl);"
    assert deduplicate_fragment("", registry) == ""


def test_deduplicate_fragment_keeps_initializer_intact():
    registry = NameRegistry(reserved=["page"])
    code = "  const page = page.locator('main');\n  await expect(page).toBeVisible();"
    assert deduplicate_fragment(code, registry) == (
        "  const page2 = page.locator('main');\n  await expect(page2).toBeVisible();"
    )


def test_deduplicate_fragment_ignores_declarations_inside_strings():
    registry = NameRegistry(reserved=["total"])
    code = "  await expect(page.getByText('const total = 5').first()).toBeVisible();"
    assert deduplicate_fragment(code, registry) == code


@pytest.mark.parametrize(
    "value,fallback,expected",
    [
        ("delete", "text", "deleteText"),
        ("continue", "element", "continueElement"),
        ("await", "text", "awaitText"),
        ("continued", "text", "continued"),
    ],
)
def test_sanitize_variable_name_avoids_reserved_words(value, fallback, expected):
    assert sanitize_variable_name(value, fallback) == expected


def test_reserved_word_identifiers():
    assert identifier_for_element(fp(test_id="continue")) == "continueElement"
    assert identifier_for_element(fp(text_snippet="Delete")) == "deleteElement"
    assert identifier_for_text("Continue") == "continueText"
