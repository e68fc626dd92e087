"""Packed struct layout analysis."""

from .assembler import analyze as analyze
from .assembler import analyze_struct as analyze_struct
from .errors import ConfigError as ConfigError
from .model import *
from .parser import parse as parse
from .positions import BitsPosition as BitsPosition
from .positions import FieldMidPositioning as FieldMidPositioning
from .positions import Next as Next
from .positions import Range as Range
from .positions import Start as Start
from .types import *
