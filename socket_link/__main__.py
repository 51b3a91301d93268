import sys

from socket_link.cli import main

sys.exit(main())
