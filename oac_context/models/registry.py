"""Registry models.

Typed representation of the remote component catalog (registry.json).
The registry is validated as a whole: a document that fails any check is
rejected rather than partially accepted.
"""

from enum import Enum

from pydantic import BaseModel
from pydantic import Field
from pydantic import model_validator

from oac_context.errors import UnknownProfileError


class Component(BaseModel):
    """One installable unit of the registry.

    Attributes:
        id: Unique identifier within the registry
        name: Human-readable name
        type: Component kind as declared upstream (e.g. "context")
        path: Location of the component within the source tree
        category: Category name, drives profile membership
    """

    id: str
    name: str
    type: str
    path: str
    category: str
    description: str | None = None
    tags: list[str] | None = None
    dependencies: list[str] | None = None
    files: list[str] | None = None
    aliases: list[str] | None = None
    version: str | None = None


class RegistryComponents(BaseModel):
    """Components grouped by kind, each group in registry order."""

    agents: list[Component] = Field(default_factory=list)
    subagents: list[Component] = Field(default_factory=list)
    commands: list[Component] = Field(default_factory=list)
    tools: list[Component] = Field(default_factory=list)
    plugins: list[Component] = Field(default_factory=list)
    skills: list[Component] = Field(default_factory=list)
    contexts: list[Component] = Field(default_factory=list)
    config: list[Component] = Field(default_factory=list)

    def all(self) -> list[Component]:
        """Return every component across all groups."""
        return [
            *self.agents,
            *self.subagents,
            *self.commands,
            *self.tools,
            *self.plugins,
            *self.skills,
            *self.contexts,
            *self.config,
        ]


class Registry(BaseModel):
    """The full component catalog.

    Invariant: every component's category is a key of ``categories``.
    """

    version: str
    schema_version: str
    repository: str
    categories: dict[str, str]
    components: RegistryComponents

    @model_validator(mode="after")
    def check_categories(self) -> "Registry":
        """Reject components whose category is not declared."""
        unknown = sorted(
            {f"{c.id} ({c.category})" for c in self.components.all() if c.category not in self.categories}
        )
        if unknown:
            raise ValueError(f"Components reference undeclared categories: {', '.join(unknown)}")
        return self


class Profile(str, Enum):
    """Installation size.

    Each profile's category set contains the previous one's; ``ALL``
    bypasses category filtering.
    """

    ESSENTIAL = "essential"
    STANDARD = "standard"
    EXTENDED = "extended"
    SPECIALIZED = "specialized"
    ALL = "all"

    @classmethod
    def parse(cls, value: "str | Profile") -> "Profile":
        """Parse a profile name, accepting the legacy spellings.

        Raises:
            UnknownProfileError: If the name is not a profile or alias
        """
        if isinstance(value, Profile):
            return value
        name = value.strip().lower()
        name = PROFILE_ALIASES.get(name, name)
        try:
            return cls(name)
        except ValueError:
            raise UnknownProfileError(f"Unknown profile: {value}") from None

    @property
    def categories(self) -> frozenset[str] | None:
        """Allowed categories, or None when every category is allowed."""
        if self is Profile.ALL:
            return None
        return frozenset(_CUMULATIVE_CATEGORIES[: _PROFILE_ORDER.index(self) + 2])


# Categories unlocked in order; essential starts with the first two.
_CUMULATIVE_CATEGORIES = ("essential", "core", "standard", "extended", "specialized")
_PROFILE_ORDER = (Profile.ESSENTIAL, Profile.STANDARD, Profile.EXTENDED, Profile.SPECIALIZED)

PROFILE_ALIASES = {
    "minimal": "essential",
    "core": "standard",
    "full": "all",
}

CUSTOM_PROFILE = "custom"
