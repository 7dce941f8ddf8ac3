"""Allow ``python -m arize_log``."""

from .cli import main

raise SystemExit(main())
