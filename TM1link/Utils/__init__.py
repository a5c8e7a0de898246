from TM1link.Utils.Utils import *
from TM1link.Utils.MDXUtils import MdxQuery, MdxAxis, MdxTuple, MdxMember
from TM1link.Utils.TableUtils import Table, build_table_from_cellset
