"""Allow ``python -m src.cli`` execution."""

import sys

from src.cli.rag import main

sys.exit(main())
