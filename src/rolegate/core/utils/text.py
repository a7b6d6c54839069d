"""Text processing utilities."""

import re


UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
ULID_LENGTH = 26

# Irregular plurals likely to appear in model names
_IRREGULAR_PLURALS = {
    "person": "people",
    "child": "children",
    "man": "men",
    "woman": "women",
}


def snake_case(value: str, delimiter: str = "_") -> str:
    """Convert a StudlyCase or camelCase string to snake case.

    Strings made only of lowercase letters are returned unchanged.

    Args:
        value: The input string
        delimiter: Separator inserted before each capital letter

    Returns:
        Lowercase string with the delimiter between words

    Examples:
        >>> snake_case("createPosts")
        'create_posts'
        >>> snake_case("BlogPost")
        'blog_post'
    """
    if re.fullmatch(r"[a-z]+", value):
        return value
    value = " ".join(word[:1].upper() + word[1:] for word in value.split(" "))
    value = re.sub(r"\s+", "", value)
    return re.sub(r"(.)(?=[A-Z])", rf"\1{delimiter}", value).lower()


def humanize(value: str) -> str:
    """Turn an identifier into a sentence-cased label.

    Converts to snake case, turns dashes and underscores into spaces,
    puts a space before ``#`` and capitalises the first letter.

    Examples:
        >>> humanize("ban-users")
        'Ban users'
        >>> humanize("edit Post #5")
        'Edit post #5'
    """
    value = value.replace(" ", "_")
    value = snake_case(value)
    value = re.sub(r"[-_]+", " ", value)
    value = re.sub(r"([^ ])#+", r"\1 #", value)
    return value[:1].upper() + value[1:]


def pluralize(word: str) -> str:
    """Return the English plural of a singular noun, preserving a leading capital.

    Examples:
        >>> pluralize("Post")
        'Posts'
        >>> pluralize("Category")
        'Categories'
    """
    if not word:
        return word
    lower = word.lower()
    if lower in _IRREGULAR_PLURALS:
        plural = _IRREGULAR_PLURALS[lower]
        return plural[:1].upper() + plural[1:] if word[:1].isupper() else plural
    if re.search(r"[^aeiou]y$", lower):
        return word[:-1] + "ies"
    if re.search(r"(s|x|z|ch|sh)$", lower):
        return word + "es"
    return word + "s"


def class_basename(name: str) -> str:
    """Get the last segment of a dotted or namespaced type name."""
    return re.split(r"[./\\]", name)[-1]


def is_uuid(value: str) -> bool:
    return bool(UUID_PATTERN.match(value))


def is_ulid(value: str) -> bool:
    return len(value) == ULID_LENGTH and value.isalnum() and value.isascii()


def is_uuid_or_ulid(value: str) -> bool:
    """Check whether a string looks like a UUID or a ULID rather than a name."""
    return is_uuid(value) or is_ulid(value)
