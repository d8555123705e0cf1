import sys

from videoscripts.cli import main

sys.exit(main())
