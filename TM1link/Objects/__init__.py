from TM1link.Objects.Axis import ViewAxisSelection, ViewTitleSelection
from TM1link.Objects.Batch import BatchRequest, BatchResponse
from TM1link.Objects.Cellset import Cellset, CellsetAxis, CellsetHierarchy, CellsetTuple, Member, Cell
from TM1link.Objects.Cube import Cube
from TM1link.Objects.Dimension import Dimension
from TM1link.Objects.Element import Element
from TM1link.Objects.ElementAttribute import ElementAttribute
from TM1link.Objects.Hierarchy import Hierarchy
from TM1link.Objects.MDXView import MDXView
from TM1link.Objects.NativeView import NativeView
from TM1link.Objects.Process import Process
from TM1link.Objects.Sandbox import Sandbox
from TM1link.Objects.Subset import Subset, AnonymousSubset
from TM1link.Objects.User import User, UserType
from TM1link.Objects.View import View
