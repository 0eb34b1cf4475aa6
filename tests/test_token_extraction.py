from quotaview.services.process_discovery import extract_security_token


def test_token_attached_with_equals():
    assert extract_security_token("--csrf_token=abc123 --other flag") == "abc123"


def test_token_separated_by_whitespace():
    line = "/opt/ls/language_server_macos_arm --csrf_token  f00d-beef --random_port"
    assert extract_security_token(line) == "f00d-beef"


def test_quoted_token():
    assert extract_security_token('server.exe --csrf_token="q-1" --x') == "q-1"
    assert extract_security_token("server --csrf_token 'q-2'") == "q-2"


def test_missing_flag_gives_empty_token():
    assert extract_security_token("language_server --enable_lsp --other flag") == ""


def test_custom_flag():
    assert extract_security_token("srv --auth.token=t0k", flag="--auth.token") == "t0k"


def test_flag_without_value_does_not_take_next_flag():
    assert extract_security_token("language_server --csrf_token --random_port") == ""
    assert extract_security_token("language_server --csrf_token= --random_port") == ""
