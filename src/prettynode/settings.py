from typing import Optional, List, Any, Dict

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Icon defaults as (unicode, ascii) pairs, keyed by tree element kind.
_DEFAULT_ICONS: Dict[str, tuple[str, str]] = {
    "module": ("📦", "[M]"),
    "function": ("⚡", "fn"),
    "class": ("🔷", "cls"),
    "type": ("🔷", "type"),
    "constant": ("📌", "const"),
    "exports": ("📜", "exp"),
    "signature": ("📎", "sig"),
}


def _flag_value(value: Any) -> Any:
    # Presence-style flags: NO_COLOR= (empty) still means "on".
    if isinstance(value, str):
        return value.strip().lower() not in ("0", "false", "no", "off")
    return value


class PrettyNodeSettings(BaseSettings):
    """Settings for exploration, signature resolution and rendering."""

    model_config = SettingsConfigDict(env_prefix="PRETTY_NODE_", extra="ignore")

    debug: bool = Field(
        default=False,
        description="If True, emit debug logging for parsing and symbol resolution.",
    )
    no_color: bool = Field(
        default=False,
        validation_alias=AliasChoices("no_color", "PRETTY_NODE_NO_COLOR", "NO_COLOR"),
        description="Disable ANSI colors in pretty output. Also honours NO_COLOR.",
    )
    ascii: bool = Field(
        default=False,
        description="Use ASCII icons instead of emoji in pretty output.",
    )

    module_icon: Optional[str] = Field(default=None, description="Icon for modules.")
    function_icon: Optional[str] = Field(
        default=None, description="Icon for the functions line."
    )
    class_icon: Optional[str] = Field(
        default=None, description="Icon for the classes line."
    )
    type_icon: Optional[str] = Field(default=None, description="Icon for the types line.")
    constant_icon: Optional[str] = Field(
        default=None, description="Icon for the constants line."
    )
    exports_icon: Optional[str] = Field(
        default=None, description="Icon for the exports line."
    )
    signature_icon: Optional[str] = Field(
        default=None, description="Icon shown in front of signatures."
    )

    max_resolution_hops: int = Field(
        default=32,
        ge=1,
        description=(
            "Maximum number of module-to-module hops the import-chain resolver "
            "follows before giving up on a symbol."
        ),
    )
    default_depth: int = Field(
        default=2, ge=1, description="Default exploration depth for the tree command."
    )
    walk_depth: int = Field(
        default=2,
        ge=1,
        description="Maximum directory levels walked below each submodule directory.",
    )
    search_paths: List[str] = Field(
        default_factory=list,
        description=(
            "Directories whose node_modules are searched for installed packages. "
            "Defaults to the current directory, its parent and grandparent."
        ),
    )

    @field_validator("debug", "no_color", "ascii", mode="before")
    @classmethod
    def _presence_flags(cls, value: Any) -> Any:
        return _flag_value(value)

    def icon(self, kind: str) -> str:
        override = getattr(self, f"{kind}_icon", None)
        if override:
            return override
        emoji, ascii_icon = _DEFAULT_ICONS[kind]
        return ascii_icon if self.ascii else emoji


def load_settings(
    env_prefix: Optional[str] = None,
    env_file: Optional[str] = None,
    **kwargs,
) -> PrettyNodeSettings:
    """
    Build settings from the environment (and an optional dotenv file) with
    explicit keyword overrides taking precedence.
    """
    config_dict = SettingsConfigDict(
        env_prefix=env_prefix if env_prefix is not None else "PRETTY_NODE_",
        env_file=env_file,
        extra="ignore",
    )

    class Settings(PrettyNodeSettings):
        model_config = config_dict

    overrides = {k: v for k, v in kwargs.items() if v is not None}
    return Settings(**overrides)
