import sys

from python_bundlefs.cli import main

sys.exit(main())
