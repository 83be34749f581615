"""Runtime configuration for markfluence.

Reads Confluence connection settings from CLI args, environment variables,
.env files, and YAML config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    CONFLUENCE_DOMAIN: Confluence Cloud host, e.g. acme.atlassian.net (required)
    CONFLUENCE_SPACE: Space key new pages are created in (required)
    CONFLUENCE_EMAIL: Account email used for basic auth (required)
    CONFLUENCE_API_TOKEN: API token used for basic auth (required)
    CONFLUENCE_PARENT_PAGE_ID: Parent page for newly created pages (optional)
    MARKFLUENCE_MERMAID: Render mermaid diagrams (optional, default: true)
    MARKFLUENCE_VERBOSE: Verbose diagnostics (optional, default: false)
    MERMAID_CLI: Mermaid CLI executable (optional, default: mmdc)
"""

import logging
import os
from dataclasses import dataclass
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Raised when required configuration is missing or invalid.

    The message lists every problem found, one per line.
    """


@dataclass
class Config:
    domain: str
    space: str
    email: str
    api_token: str
    parent_page_id: str | None = None
    mermaid: bool = True
    dry_run: bool = False
    verbose: bool = False
    mermaid_cli: str = "mmdc"


def normalize_domain(domain: str) -> str:
    """Reduce a domain or URL to its bare host.

    Examples:
        >>> normalize_domain("https://acme.atlassian.net/wiki/")
        'acme.atlassian.net'
        >>> normalize_domain("acme.atlassian.net")
        'acme.atlassian.net'
    """
    domain = domain.strip()
    if "://" in domain:
        return urlparse(domain).netloc
    return domain.split("/", 1)[0]


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ConfigError if invalid.

    Every missing field is reported, not just the first.

    Args:
        config: Config instance to validate (domain is normalised in place).

    Raises:
        ConfigError: If any required field is empty.
    """
    errors: list[str] = []

    config.domain = normalize_domain(config.domain or "")
    if not config.domain:
        errors.append(
            "Missing Confluence domain. Set --domain or CONFLUENCE_DOMAIN"
        )

    if not (config.space or "").strip():
        errors.append(
            "Missing Confluence space. Set --space or CONFLUENCE_SPACE"
        )

    if not (config.email or "").strip():
        errors.append(
            "Missing Confluence email. Set --user or CONFLUENCE_EMAIL"
        )

    if not (config.api_token or "").strip():
        errors.append(
            "Missing Confluence API token. Set --token or CONFLUENCE_API_TOKEN"
        )

    if errors:
        raise ConfigError("\n".join(errors))

    config.space = config.space.strip()
    config.email = config.email.strip()
    config.api_token = config.api_token.strip()


def get_bool_env(key: str) -> bool | None:
    """Return True/False from env var, or None if unset."""
    val = os.getenv(key)
    if val is None or val == "":
        return None
    return val.lower() in ("true", "1", "yes", "on")


def load_config(
    domain: str | None = None,
    space: str | None = None,
    email: str | None = None,
    api_token: str | None = None,
    parent_page_id: str | None = None,
    mermaid: bool | None = None,
    dry_run: bool = False,
    verbose: bool = False,
    yaml_fallbacks: dict | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        domain: Override Confluence domain.
        space: Override space key.
        email: Override account email.
        api_token: Override API token.
        parent_page_id: Override parent page for new pages.
        mermaid: ``False`` disables diagram rendering (``--no-mermaid``);
            ``None`` defers to env / YAML.
        dry_run: Predict actions without changing anything (CLI flag).
        verbose: Verbose diagnostics (CLI flag).
        yaml_fallbacks: Dict of values from the YAML ``confluence`` section.

    Returns:
        Validated Config instance.

    Raises:
        ConfigError: If required settings are missing after checking all
            sources.
    """
    fb = yaml_fallbacks or {}

    # --- String fields: CLI > env > YAML ---

    final_domain = domain or os.getenv("CONFLUENCE_DOMAIN") or fb.get("domain")
    final_space = space or os.getenv("CONFLUENCE_SPACE") or fb.get("space")
    final_email = email or os.getenv("CONFLUENCE_EMAIL") or fb.get("email")
    final_token = (
        api_token or os.getenv("CONFLUENCE_API_TOKEN") or fb.get("api_token")
    )
    final_parent = (
        parent_page_id
        or os.getenv("CONFLUENCE_PARENT_PAGE_ID")
        or fb.get("parent_page_id")
    )
    final_cli = os.getenv("MERMAID_CLI") or fb.get("mermaid_cli") or "mmdc"

    # --- Boolean fields: CLI > env > YAML > default ---

    if mermaid is not None:
        final_mermaid = mermaid
    else:
        env_mermaid = get_bool_env("MARKFLUENCE_MERMAID")
        if env_mermaid is not None:
            final_mermaid = env_mermaid
        else:
            final_mermaid = bool(fb.get("mermaid", True))

    if verbose:
        final_verbose = True
    else:
        env_verbose = get_bool_env("MARKFLUENCE_VERBOSE")
        if env_verbose is not None:
            final_verbose = env_verbose
        else:
            final_verbose = bool(fb.get("verbose", False))

    config = Config(
        domain=str(final_domain or ""),
        space=str(final_space or ""),
        email=str(final_email or ""),
        api_token=str(final_token or ""),
        parent_page_id=str(final_parent) if final_parent else None,
        mermaid=final_mermaid,
        dry_run=dry_run,
        verbose=final_verbose,
        mermaid_cli=final_cli,
    )

    validate_config(config)

    if config.dry_run:
        logger.info("Dry run: no pages or attachments will be changed")

    return config
