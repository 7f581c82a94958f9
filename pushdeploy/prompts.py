"""
Interactive input

Asks for the deployment parameters with inquirer and turns the answers into
a validated DeploymentTarget. Every question is asked exactly once; a missing
or malformed answer aborts with InvalidInputError.
"""

import os
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Tuple

import inquirer

from pushdeploy.constants import DEFAULT_BRANCH, ENV_PREFIX
from pushdeploy.exceptions import InvalidInputError
from pushdeploy.models.deployment import DeploymentTarget, GitCredentials
from pushdeploy.models.ssh import SSHConfig
from pushdeploy.utils import REPO_NAME_PATTERN, repo_name_from_url

PromptFn = Callable[..., Optional[Dict[str, str]]]


class InteractivePrompter:
    """
    Collects deployment inputs.

    Defaults for non-secret questions can be pre-filled from PUSHDEPLOY_*
    environment variables (e.g. PUSHDEPLOY_REMOTE_HOST). The token is never
    read from the environment.
    """

    def __init__(
        self,
        prompt: PromptFn = inquirer.prompt,
        environ: Optional[Mapping[str, str]] = None,
        work_dir: Optional[Path] = None,
    ):
        self._prompt = prompt
        self.environ = os.environ if environ is None else environ
        self.work_dir = Path(work_dir) if work_dir else Path.cwd()

    def _default(self, name: str, fallback: str = "") -> str:
        return self.environ.get(f"{ENV_PREFIX}{name.upper()}", fallback)

    def _ask(self, questions: List) -> Dict[str, str]:
        answers = self._prompt(questions, raise_keyboard_interrupt=True)
        if answers is None:
            raise KeyboardInterrupt
        return {key: (value or "").strip() for key, value in answers.items()}

    def _target_questions(self) -> List:
        return [
            inquirer.Text(
                "repo_url",
                message="Git repository URL (HTTPS)",
                default=self._default("repo_url"),
            ),
        ]

    def _remote_questions(self) -> List:
        return [
            inquirer.Text(
                "remote_user",
                message="Remote SSH username",
                default=self._default("remote_user"),
            ),
            inquirer.Text(
                "remote_host",
                message="Remote host (IP or hostname)",
                default=self._default("remote_host"),
            ),
            inquirer.Text(
                "ssh_key_path",
                message="SSH private key path",
                default=self._default("ssh_key_path", "~/.ssh/id_rsa"),
            ),
        ]

    def ask_deploy(self) -> Tuple[DeploymentTarget, GitCredentials]:
        """Ask every deploy question, then validate the answers."""
        questions = self._target_questions()
        questions.append(inquirer.Password("token", message="Personal access token"))
        questions.append(
            inquirer.Text(
                "branch",
                message="Branch",
                default=self._default("branch", DEFAULT_BRANCH),
            )
        )
        questions += self._remote_questions()
        questions.append(
            inquirer.Text(
                "app_port",
                message="Application internal port (container listen port)",
                default=self._default("app_port"),
            )
        )
        answers = self._ask(questions)

        token = answers.get("token", "")
        if not token:
            raise InvalidInputError(
                "An access token is required",
                context="The token authenticates the clone of private repositories",
            )

        target = build_target(answers, work_dir=self.work_dir, require_port=True)
        return target, GitCredentials(token=token)

    def ask_cleanup(self) -> DeploymentTarget:
        """Ask only what teardown needs: repository and remote access."""
        answers = self._ask(self._target_questions() + self._remote_questions())
        return build_target(answers, work_dir=self.work_dir, require_port=False)


def build_target(
    answers: Mapping[str, str], work_dir: Path, require_port: bool = True
) -> DeploymentTarget:
    """
    Validate raw answers and build the DeploymentTarget.

    Raises:
        InvalidInputError: On a missing value, an unusable repository URL,
            a missing key file or an out-of-range port
    """
    required = ["repo_url", "remote_user", "remote_host", "ssh_key_path"]
    if require_port:
        required.append("app_port")
    missing = [name for name in required if not answers.get(name)]
    if missing:
        raise InvalidInputError(
            f"Required value not provided: {', '.join(missing)}"
        )

    repo_url = answers["repo_url"]
    repo_name = repo_name_from_url(repo_url)
    if not REPO_NAME_PATTERN.match(repo_name):
        raise InvalidInputError(
            f"Cannot derive a repository name from {repo_url}",
            context="Expected something like https://github.com/user/repo.git",
        )

    ssh_key_path = answers["ssh_key_path"]
    if not SSHConfig(key_path=ssh_key_path, user=answers["remote_user"]).key_exists:
        raise InvalidInputError(f"SSH key not found at {ssh_key_path}")

    app_port = None
    if answers.get("app_port"):
        app_port = parse_port(answers["app_port"])

    return DeploymentTarget(
        repo_url=repo_url,
        remote_user=answers["remote_user"],
        remote_host=answers["remote_host"],
        ssh_key_path=ssh_key_path,
        branch=answers.get("branch") or DEFAULT_BRANCH,
        app_port=app_port,
        work_dir=Path(work_dir),
    )


def parse_port(value: str) -> int:
    """Parse a TCP port in 1-65535."""
    try:
        port = int(value)
    except ValueError:
        raise InvalidInputError(f"Port must be a number, got '{value}'")
    if not 1 <= port <= 65535:
        raise InvalidInputError(f"Port must be between 1 and 65535, got {port}")
    return port
