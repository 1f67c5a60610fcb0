import sys

from glossword.cli import main

sys.exit(main())
