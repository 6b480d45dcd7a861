import getpass
import os
from typing import Optional

import keyring

# Constants
KEYRING_SERVICE = "mintgrabber"
KEYRING_USERNAME = "api_key"
API_KEY_ENV = "MINTGRABBER_API_KEY"


def _persist_api_key(api_key: str) -> None:
    """Save API key to keyring"""
    keyring.set_password(KEYRING_SERVICE, KEYRING_USERNAME, api_key)


def _get_stored_api_key(verbose: bool = False) -> Optional[str]:
    """Get the API key from the environment or keyring. Returns None if not available."""
    api_key = os.environ.get(API_KEY_ENV)
    if api_key:
        if verbose:
            print(f"Using API key from {API_KEY_ENV}")
        return api_key

    api_key = keyring.get_password(KEYRING_SERVICE, KEYRING_USERNAME)
    if api_key and verbose:
        print("✓ Found stored API key")
    return api_key


def get_api_key(
    api_key: Optional[str] = None, force_login: bool = False, verbose: bool = False
) -> Optional[str]:
    """
    Resolve the API key used to authenticate requests.
    Returns the key or None if none was entered.

    Args:
        api_key: Explicit key. Takes precedence and is not persisted.
        force_login: If True, prompt for a new key even if one is stored.
        verbose: If True, print status messages.
    """
    if api_key:
        return api_key

    if not force_login:
        stored = _get_stored_api_key(verbose=verbose)
        if stored:
            return stored

    api_key = getpass.getpass("Mint API key: ").strip()
    if not api_key:
        print("✗ No API key entered.")
        return None

    _persist_api_key(api_key)
    if verbose:
        print("✓ API key saved")
    return api_key


def logout() -> None:
    """Clear the stored API key."""
    try:
        keyring.delete_password(KEYRING_SERVICE, KEYRING_USERNAME)
        print("✓ Cleared stored API key")
    except keyring.errors.PasswordDeleteError:
        print("No stored API key found.")
