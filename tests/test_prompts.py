"""Interactive input: one pass of questions, strict validation."""

import pytest

from conftest import TOKEN
from pushdeploy.exceptions import InvalidInputError
from pushdeploy.prompts import InteractivePrompter, build_target, parse_port


class ScriptedPrompt:
    """Replaces inquirer.prompt with fixed answers; records the questions asked."""

    def __init__(self, answers):
        self.answers = answers
        self.questions = []

    def __call__(self, questions, raise_keyboard_interrupt=False):
        self.questions.extend(questions)
        return {q.name: self.answers.get(q.name, "") for q in questions}


@pytest.fixture
def answers(ssh_key):
    return {
        "repo_url": "https://example.com/acme/app.git",
        "token": TOKEN,
        "branch": "",
        "remote_user": "deploy",
        "remote_host": "203.0.113.10",
        "ssh_key_path": str(ssh_key),
        "app_port": "3000",
    }


def test_deploy_questions_produce_target(answers, tmp_path):
    prompt = ScriptedPrompt(answers)
    target, credentials = InteractivePrompter(
        prompt=prompt, environ={}, work_dir=tmp_path
    ).ask_deploy()

    assert target.repo_name == "app"
    assert target.branch == "main"
    assert target.app_port == 3000
    assert target.work_dir == tmp_path
    assert credentials.token == TOKEN
    names = [q.name for q in prompt.questions]
    assert names == [
        "repo_url", "token", "branch", "remote_user", "remote_host", "ssh_key_path", "app_port"
    ]
    assert len(set(names)) == len(names)


def test_token_question_does_not_echo(answers, tmp_path):
    prompt = ScriptedPrompt(answers)
    InteractivePrompter(prompt=prompt, environ={}, work_dir=tmp_path).ask_deploy()
    token_question = [q for q in prompt.questions if q.name == "token"][0]
    assert type(token_question).__name__ == "Password"


def test_cleanup_asks_only_for_access(answers, tmp_path):
    prompt = ScriptedPrompt(answers)
    target = InteractivePrompter(prompt=prompt, environ={}, work_dir=tmp_path).ask_cleanup()

    assert [q.name for q in prompt.questions] == [
        "repo_url", "remote_user", "remote_host", "ssh_key_path"
    ]
    assert target.logical_name == "app_app"
    assert target.app_port is None


def test_environment_prefills_defaults(answers, tmp_path):
    prompt = ScriptedPrompt(answers)
    InteractivePrompter(
        prompt=prompt,
        environ={"PUSHDEPLOY_REMOTE_HOST": "app.example.com", "PUSHDEPLOY_BRANCH": "develop"},
        work_dir=tmp_path,
    ).ask_deploy()

    defaults = {q.name: q.default for q in prompt.questions if q.name != "token"}
    assert defaults["remote_host"] == "app.example.com"
    assert defaults["branch"] == "develop"


def test_missing_token_is_invalid_input(answers, tmp_path):
    answers["token"] = ""
    with pytest.raises(InvalidInputError) as excinfo:
        InteractivePrompter(
            prompt=ScriptedPrompt(answers), environ={}, work_dir=tmp_path
        ).ask_deploy()
    assert excinfo.value.exit_code == 10


@pytest.mark.parametrize("field", ["repo_url", "remote_user", "remote_host", "ssh_key_path", "app_port"])
def test_missing_required_value(answers, tmp_path, field):
    answers[field] = ""
    with pytest.raises(InvalidInputError):
        build_target(answers, work_dir=tmp_path)


def test_missing_key_file(answers, tmp_path):
    answers["ssh_key_path"] = str(tmp_path / "nope")
    with pytest.raises(InvalidInputError) as excinfo:
        build_target(answers, work_dir=tmp_path)
    assert "SSH key not found" in excinfo.value.message


def test_unusable_repository_url(answers, tmp_path):
    answers["repo_url"] = "https://example.com/acme/bad name.git"
    with pytest.raises(InvalidInputError):
        build_target(answers, work_dir=tmp_path)


@pytest.mark.parametrize("name", ["-x", "_x", ".x", "..", "."])
def test_repository_name_must_start_alphanumeric(answers, tmp_path, name):
    answers["repo_url"] = f"https://example.com/acme/{name}.git"
    with pytest.raises(InvalidInputError):
        build_target(answers, work_dir=tmp_path)


@pytest.mark.parametrize("value", ["0", "65536", "http", "-1"])
def test_bad_ports(value):
    with pytest.raises(InvalidInputError):
        parse_port(value)


def test_port_bounds():
    assert parse_port("1") == 1
    assert parse_port("65535") == 65535


def test_cancelled_prompt_is_interrupt(tmp_path):
    with pytest.raises(KeyboardInterrupt):
        InteractivePrompter(
            prompt=lambda questions, **kwargs: None, environ={}, work_dir=tmp_path
        ).ask_cleanup()
