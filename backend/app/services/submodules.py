"""
Submodule resolution.

Joins gitlink tree entries with their ``.gitmodules`` configuration and
derives a browsable link for the pinned commit.
"""
import logging
import posixpath
import re
from dataclasses import dataclass
from enum import Enum
from io import BytesIO
from urllib.parse import urlparse

from dulwich.config import ConfigFile
from dulwich.repo import Repo as DulwichRepo

from app.config import DEFAULT_LINK_HOSTS, REPOS_API_PREFIX
from app.services.commits import short_id
from app.services.errors import NotAFile, NotASubmodule, PathNotFound, SubmoduleNotFound
from app.services.tree import EntryKind, TreeEntry, entry_kind, find_entry, normalize_path, read_blob

logger = logging.getLogger(__name__)

GITMODULES = ".gitmodules"

# Same-origin tree link for repositories hosted by this server
LOCAL_TREE_LINK = REPOS_API_PREFIX + "/{repo}/tree/{hash}/"

_SCP_URL = re.compile(r"^[^@/\s]+@([^:/\s]+):(.+?)(?:\.git)?/?$")


class SubmoduleStatus(str, Enum):
    CONFIGURED = "configured"
    MISSING_CONFIG = "missing-config"


@dataclass(frozen=True)
class SubmoduleConfig:
    """One ``[submodule "name"]`` section; absent keys default to empty."""
    name: str
    path: str
    url: str = ""
    branch: str = ""


@dataclass
class SubmoduleInfo:
    name: str
    path: str
    hash: str
    short_hash: str
    status: SubmoduleStatus = SubmoduleStatus.CONFIGURED
    url: str = ""
    branch: str = ""
    web_url: str = ""


def _config_value(config: ConfigFile, section: tuple, key: bytes) -> str:
    try:
        return config.get(section, key).decode("utf-8", errors="replace").strip()
    except KeyError:
        return ""


def parse_gitmodules(content: bytes) -> dict[str, SubmoduleConfig]:
    """Parse ``.gitmodules`` into records keyed by submodule path."""
    try:
        config = ConfigFile.from_file(BytesIO(content))
    except ValueError as e:
        logger.warning("Ignoring malformed %s: %s", GITMODULES, e)
        return {}

    modules = {}
    for section in config.sections():
        if len(section) != 2 or section[0] != b"submodule":
            continue
        path = normalize_path(_config_value(config, section, b"path"))
        if not path:
            continue
        modules[path] = SubmoduleConfig(
            name=section[1].decode("utf-8", errors="replace"),
            path=path,
            url=_config_value(config, section, b"url"),
            branch=_config_value(config, section, b"branch"),
        )
    return modules


def load_gitmodules(repo: DulwichRepo, commit_id: bytes) -> dict[str, SubmoduleConfig]:
    """Submodule config at ``commit_id``; a missing file yields no entries."""
    try:
        content = read_blob(repo, commit_id, GITMODULES)
    except (PathNotFound, NotAFile):
        return {}
    return parse_gitmodules(content)


def parse_remote_url(git_url: str) -> tuple[str, str] | None:
    """Normalize an SCP-style or standard clone URL to ``(host, path)`` without ``.git``."""
    match = _SCP_URL.match(git_url)
    if match:
        return match.group(1).lower(), match.group(2).strip("/")

    parsed = urlparse(git_url)
    if not parsed.netloc or not parsed.hostname:
        return None
    host = parsed.hostname
    try:
        port = parsed.port
    except ValueError:
        return None
    if port and parsed.scheme in ("http", "https"):
        host = f"{host}:{port}"
    path = parsed.path.strip("/")
    if path.endswith(".git"):
        path = path[:-4]
    return host, path


def link_style(host: str, link_hosts: dict[str, str]) -> str:
    hostname = host.split(":", 1)[0].lower()
    for known, style in link_hosts.items():
        if hostname == known or hostname.endswith("." + known):
            return style
    return "generic"


def format_web_url(host: str, path: str, commit_hash: str, link_hosts: dict[str, str] | None = None) -> str:
    style = link_style(host, DEFAULT_LINK_HOSTS if link_hosts is None else link_hosts)
    if style == "github":
        return f"https://{host}/{path}/tree/{commit_hash}"
    if style == "gitlab":
        return f"https://{host}/{path}/-/tree/{commit_hash}"
    if style == "bitbucket":
        return f"https://{host}/{path}/src/{commit_hash}"
    if style == "local":
        repo_name = path.rsplit("/", 1)[-1]
        if repo_name.endswith(".git"):
            repo_name = repo_name[:-4]
        if repo_name:
            return LOCAL_TREE_LINK.format(repo=repo_name, hash=commit_hash)
    return f"https://{host}/{path}"


def convert_to_web_url(git_url: str, commit_hash: str, link_hosts: dict[str, str] | None = None) -> str:
    """Browsable link for ``git_url`` at ``commit_hash``; unparsable URLs come back unchanged."""
    parsed = parse_remote_url(git_url)
    if parsed is None:
        return git_url
    host, path = parsed
    return format_web_url(host, path, commit_hash, link_hosts)


def _build_info(
    path: str,
    sha: str,
    modules: dict[str, SubmoduleConfig],
    link_hosts: dict[str, str] | None,
) -> SubmoduleInfo:
    info = SubmoduleInfo(
        name=posixpath.basename(path),
        path=path,
        hash=sha,
        short_hash=short_id(sha),
    )
    config = modules.get(path)
    if config is None:
        info.status = SubmoduleStatus.MISSING_CONFIG
        return info
    info.name = config.name
    info.url = config.url
    info.branch = config.branch
    if config.url:
        info.web_url = convert_to_web_url(config.url, sha, link_hosts)
    return info


def resolve_submodule(
    repo: DulwichRepo,
    commit_id: bytes,
    path: str,
    link_hosts: dict[str, str] | None = None,
) -> SubmoduleInfo:
    """Details for the gitlink at ``path``."""
    path = normalize_path(path)
    try:
        mode, sha = find_entry(repo, commit_id, path)
    except PathNotFound:
        raise SubmoduleNotFound(path)
    if entry_kind(mode) is not EntryKind.SUBMODULE:
        raise NotASubmodule(path)
    return _build_info(path, sha.decode("ascii"), load_gitmodules(repo, commit_id), link_hosts)


def submodules_for_entries(
    repo: DulwichRepo,
    commit_id: bytes,
    dir_path: str,
    entries: list[TreeEntry],
    link_hosts: dict[str, str] | None = None,
) -> dict[str, SubmoduleInfo]:
    """Submodule details for every gitlink in a listing, keyed by entry name."""
    gitlinks = [entry for entry in entries if entry.is_submodule]
    if not gitlinks:
        return {}
    modules = load_gitmodules(repo, commit_id)
    dir_path = normalize_path(dir_path)
    return {
        entry.name: _build_info(
            posixpath.join(dir_path, entry.name) if dir_path else entry.name,
            entry.hash,
            modules,
            link_hosts,
        )
        for entry in gitlinks
    }
