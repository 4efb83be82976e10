"""Allow ``python -m flowerbreed``."""

from flowerbreed.cli import main

raise SystemExit(main())
