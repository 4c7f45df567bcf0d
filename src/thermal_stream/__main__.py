import sys

from thermal_stream.cli import main


sys.exit(main())
