"""Allow ``python -m daffodil_bin.saver``."""

from __future__ import annotations

import sys

from daffodil_bin.saver.dispatcher import main

if __name__ == "__main__":
    sys.exit(main())
