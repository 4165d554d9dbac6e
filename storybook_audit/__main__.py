import sys

from storybook_audit.cli import main

sys.exit(main())
