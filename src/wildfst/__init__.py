from wildfst.fst import FST, invert, project, union, concatenate
from wildfst.atomic import Arc, State, EPSILON
from wildfst.wildcard import demote_input_other, demote_output_other, fix_other_after_compose, \
    expand_other_arcs, delete_other_arcs, input_projection_fix_other, output_projection_fix_other
from wildfst.altrule import synchronize_alt_rule
from wildfst.algorithms import Wildcards
from wildfst._private.exceptions import WildfstError, LabelConfigError, ExpansionLimitError

__author__     = "Mans Hulden"
__copyright__  = "Copyright 2022"
__credits__    = ["Mans Hulden"]
__license__    = "Apache"
__version__    = "0.1"
__maintainer__ = "Mans Hulden"
__email__      = "mans.hulden@gmail.com"
__status__     = "Prototype"
