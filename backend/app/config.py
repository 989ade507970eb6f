from pydantic import BaseModel, field_validator
from functools import lru_cache
import ipaddress
import os

# Mount point of the browse and admin routers
REPOS_API_PREFIX = "/api/repos"

# Built-in submodule link styles; REPOVIEW_LINK_HOSTS entries are merged over these
DEFAULT_LINK_HOSTS: dict[str, str] = {
    "github.com": "github",
    "gitlab.com": "gitlab",
    "bitbucket.org": "bitbucket",
}


class Settings(BaseModel):
    app_name: str = "RepoView"
    repos_path: str = "./repos"
    public_url: str | None = None
    tailnet_url: str | None = None
    cors_origins: list[str] = ["http://localhost:5173"]
    trusted_network: str = "100.64.0.0/10"
    link_hosts: dict[str, str] = dict(DEFAULT_LINK_HOSTS)
    detect_renames: bool = True
    diff_context_lines: int = 3
    commit_page_size: int = 50
    log_level: str = "INFO"

    @field_validator("trusted_network")
    @classmethod
    def _ipv4_network(cls, value: str) -> str:
        network = ipaddress.ip_network(value, strict=False)
        if network.version != 4:
            raise ValueError("trusted_network must be an IPv4 network")
        return str(network)


def parse_link_hosts(raw: str | None) -> dict[str, str]:
    """Parse ``host=style,host=style`` into a mapping merged over the defaults."""
    hosts = dict(DEFAULT_LINK_HOSTS)
    if not raw:
        return hosts
    for item in raw.split(","):
        host, sep, style = item.partition("=")
        if not sep or not host.strip():
            continue
        hosts[host.strip().lower()] = style.strip().lower() or "generic"
    return hosts


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@lru_cache
def get_settings() -> Settings:
    return Settings(
        repos_path=os.getenv("REPOVIEW_REPOS_PATH", "./repos"),
        public_url=os.getenv("REPOVIEW_PUBLIC_URL") or None,
        tailnet_url=os.getenv("REPOVIEW_TAILNET_URL") or None,
        trusted_network=os.getenv("REPOVIEW_TRUSTED_NETWORK", "100.64.0.0/10"),
        link_hosts=parse_link_hosts(os.getenv("REPOVIEW_LINK_HOSTS")),
        detect_renames=_env_bool("REPOVIEW_DETECT_RENAMES", True),
        diff_context_lines=int(os.getenv("REPOVIEW_DIFF_CONTEXT", "3")),
        commit_page_size=int(os.getenv("REPOVIEW_COMMIT_PAGE_SIZE", "50")),
        log_level=os.getenv("REPOVIEW_LOG_LEVEL", "INFO"),
    )
