from __future__ import annotations

from mdrender.cli import main

raise SystemExit(main())
