"""plhwtools - e-paper display hardware diagnostic and control tools."""

__version__ = "0.6.0"

APP_NAME = "plhwtools"
DESCRIPTION = "Plastic Logic hardware tools"
COPYRIGHT = "Copyright (C) 2011, 2012, 2013 Plastic Logic Limited"
LICENSE = (
    "This program is distributed in the hope that it will be useful,\n"
    "but WITHOUT ANY WARRANTY; without even the implied warranty of\n"
    "MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the\n"
    "GNU General Public License for more details."
)
