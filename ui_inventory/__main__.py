"""Module entry point for the ui-inventory CLI."""

from .main import main

raise SystemExit(main())
