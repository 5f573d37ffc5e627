import sys

from tgterm.cli import main

sys.exit(main())
