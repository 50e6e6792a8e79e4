"""
Single entry point for spawning git.

Backends call run_git_command() instead of subprocess directly. The helper
marks the target repository as a safe.directory, which keeps clones owned by
another account readable, and logs each command at debug level.

Failures are raised as-is; retrying is left to callers.
"""

import logging
import os
import subprocess
from pathlib import Path
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

CONFIG_KEY_PREFIX = "GIT_CONFIG_KEY_"


def get_git_environment(project_dir: Path) -> Dict[str, str]:
    """Build the environment every git subprocess of this package runs with.

    ``project_dir`` is registered as a safe.directory through git's
    ``GIT_CONFIG_*`` environment protocol. Entries the caller already
    exported move up one slot so they still apply.
    """
    env = os.environ.copy()

    inherited = sorted(
        int(key[len(CONFIG_KEY_PREFIX) :])
        for key in os.environ
        if key.startswith(CONFIG_KEY_PREFIX)
        and key[len(CONFIG_KEY_PREFIX) :].isdigit()
    )
    for idx in inherited:
        env[f"GIT_CONFIG_KEY_{idx + 1}"] = os.environ[f"GIT_CONFIG_KEY_{idx}"]
        value = os.environ.get(f"GIT_CONFIG_VALUE_{idx}")
        if value is not None:
            env[f"GIT_CONFIG_VALUE_{idx + 1}"] = value

    env["GIT_CONFIG_KEY_0"] = "safe.directory"
    env["GIT_CONFIG_VALUE_0"] = str(Path(project_dir).resolve())
    env["GIT_CONFIG_COUNT"] = str(max(inherited, default=-1) + 2)

    # Never block on credential prompts
    env.setdefault("GIT_TERMINAL_PROMPT", "0")

    return env


def run_git_command(
    cmd: List[str],
    cwd: Path,
    check: bool = True,
    capture_output: bool = True,
    text: bool = True,
    timeout: Optional[float] = None,
    **kwargs,
) -> subprocess.CompletedProcess:
    """Run ``cmd`` in ``cwd`` with the environment from get_git_environment().

    Args:
        cmd: Argument list, starting with "git"
        cwd: Repository directory the command runs in
        check: Raise on a non-zero exit status
        capture_output: Collect stdout and stderr on the result
        text: Decode output to str; pass False for raw bytes
        timeout: Seconds before the process is killed (None: no limit)
        **kwargs: Passed to subprocess.run; an ``env`` mapping is merged
            over the git environment

    Returns:
        The finished process

    Raises:
        ValueError: If ``cmd`` is not a git invocation
        subprocess.CalledProcessError: On failure when ``check`` is set
        subprocess.TimeoutExpired: When ``timeout`` elapses
        FileNotFoundError: When no git executable is on PATH
    """
    if not cmd or cmd[0] != "git":
        raise ValueError("Command must start with 'git'")

    env = get_git_environment(cwd)

    if "env" in kwargs:
        env.update(kwargs.pop("env"))

    logger.debug(f"Running {' '.join(cmd)} in {cwd}")

    return subprocess.run(
        cmd,
        cwd=cwd,
        check=check,
        capture_output=capture_output,
        text=text,
        timeout=timeout,
        env=env,
        **kwargs,
    )


def is_git_repository(project_dir: Path) -> bool:
    """True when git accepts ``project_dir`` as a work tree or git directory."""
    try:
        run_git_command(
            ["git", "rev-parse", "--git-dir"],
            cwd=project_dir,
            check=True,
        )
        return True
    except (subprocess.CalledProcessError, FileNotFoundError, NotADirectoryError):
        return False


def is_bare_repository(project_dir: Path) -> bool:
    """True when git reports ``project_dir`` as a bare repository."""
    try:
        result = run_git_command(
            ["git", "rev-parse", "--is-bare-repository"],
            cwd=project_dir,
            check=True,
        )
    except (subprocess.CalledProcessError, FileNotFoundError, NotADirectoryError):
        return False
    return bool(result.stdout.strip() == "true")


def get_current_branch(project_dir: Path) -> Optional[str]:
    """Short name of the branch HEAD points at.

    Returns None on a detached HEAD and outside a repository.
    """
    try:
        result = run_git_command(
            ["git", "symbolic-ref", "--quiet", "--short", "HEAD"],
            cwd=project_dir,
            check=True,
        )
    except (subprocess.CalledProcessError, FileNotFoundError):
        return None

    branch = result.stdout.strip()
    return str(branch) if branch else None
