"""Allow ``python -m src.rtwtui``."""

import sys

from src.rtwtui.app.main import main

sys.exit(main())
