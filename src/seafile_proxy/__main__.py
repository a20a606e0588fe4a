import sys

from seafile_proxy.cli import main

sys.exit(main())
