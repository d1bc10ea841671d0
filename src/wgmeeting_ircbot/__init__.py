"""IRC bot that posts minuted meeting discussions to GitHub issues."""

__version__ = "0.5.0"

PACKAGE_NAME = "wgmeeting-github-ircbot"


def code_description() -> str:
    """Describe the running bot version (used by ``status`` and ``reboot``)."""

    return f"{PACKAGE_NAME} version {__version__}"
