"""Post-clone environment setup helper.

Run once after creating the environment and installing the package:

    python -m venv .venv && source .venv/bin/activate
    pip install -e ".[test]"
    python setup_env.py

This script:
1. Verifies all required third-party imports resolve.
2. Verifies the weekly_picks modules import cleanly.
3. Checks that config.yaml loads and that NEWSDATA_API_KEY is present when
   the newsdata provider is enabled.
"""

import os
import sys


def verify_imports() -> None:
    print("Verifying core imports...")
    required = [
        ("yfinance", "yfinance"),
        ("pandas", "pandas"),
        ("requests", "requests"),
        ("feedparser", "feedparser"),
        ("yaml", "PyYAML"),
        ("dotenv", "python-dotenv"),
    ]
    all_ok = True
    for mod, pkg in required:
        try:
            __import__(mod)
            print(f"  [OK] {pkg}")
        except ImportError:
            print(f"  [MISSING] {pkg}  →  run: pip install {pkg}")
            all_ok = False

    if not all_ok:
        print("\nSome packages are missing. Run:  pip install -e .")
        sys.exit(1)


def verify_pipeline_imports() -> None:
    print("\nVerifying package imports...")
    try:
        from weekly_picks.providers.market import YFinanceMomentumProvider  # noqa: F401
        from weekly_picks.providers.news import GoogleNewsProvider  # noqa: F401
        from weekly_picks.pipeline.engine import WeeklyPipeline  # noqa: F401
        from weekly_picks.access.picks import get_current_picks  # noqa: F401
        print("  [OK] All weekly_picks modules import cleanly.")
    except Exception as exc:
        print(f"  [ERROR] Package import failed: {exc}")
        sys.exit(1)


def verify_config() -> None:
    print("\nVerifying config.yaml...")
    from weekly_picks.core.config import load_config

    try:
        config = load_config()
    except (FileNotFoundError, ValueError) as exc:
        print(f"  [ERROR] {exc}")
        sys.exit(1)
    print(f"  [OK] {len(config['universe'])} tickers, top_n={config['top_n']}")

    if "newsdata" in config["news"]["providers"] and not os.getenv("NEWSDATA_API_KEY"):
        print("  [WARN] newsdata provider enabled but NEWSDATA_API_KEY is not set in .env")


if __name__ == "__main__":
    print("=" * 60)
    print("  Weekly Picks — Environment Setup Check")
    print("=" * 60)
    verify_imports()
    verify_pipeline_imports()
    verify_config()
    print("\n" + "=" * 60)
    print("  Setup complete. You can now run: python run_pipeline.py")
    print("=" * 60)
