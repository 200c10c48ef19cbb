import sys

from nested_fields.cli import main

sys.exit(main())
