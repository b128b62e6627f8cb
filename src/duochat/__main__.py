import sys

from .launcher import start

sys.exit(start(prog_name="duochat"))
