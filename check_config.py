#!/usr/bin/env python3
"""Check configuration, API keys and display detection."""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from aiterm.capabilities import Capabilities
from aiterm.config import Config
from aiterm.errors import AgentError


def _key_preview(key):
    if not key:
        return "not set"
    if len(key) <= 12:
        return "set"
    return f"{key[:8]}...{key[-4:]}"


def check_config():
    print("\n" + "=" * 60)
    print("  Configuration check")
    print("=" * 60 + "\n")

    try:
        config = Config.load(".")
    except (AgentError, OSError) as e:
        print(f"✗ Could not load configuration: {e}")
        return 1

    print("✓ Configuration loaded")
    print(f"  Source: {config._config_source}")
    print(f"  Project: {config.project_root}")
    print(f"  Active model: {config.active_model}")
    print(f"  Vision model: {config.vision_model or '(off)'}")
    print(f"  Continue after command: {config.continue_after_command}")
    print(f"  Shell: {config.shell}")

    caps = Capabilities.detect()
    display = caps.display_server if caps.has_display else "none (screenshots blocked)"
    print(f"  Display: {display}")
    print()

    print("Models:")
    print("-" * 60)

    missing = 0
    for name, preset in config.models.items():
        key = preset.resolve_api_key()
        print(f"\n{name}:")
        print(f"  Provider: {preset.provider}")
        print(f"  Model: {preset.model}")
        print(f"  API Base: {preset.api_base or '(provider default)'}")
        print(f"  API Key: {'✓' if key else '✗'} {_key_preview(key)}")
        print(f"  Description: {preset.description}")
        if not key and preset.api_key_env:
            print(f"  ⚠  Set the key with: export {preset.api_key_env}='your-key'")
            if name == config.active_model:
                missing += 1

    print("\n" + "=" * 60 + "\n")
    return 1 if missing else 0


if __name__ == "__main__":
    sys.exit(check_config())
