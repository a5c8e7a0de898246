# -*- coding: utf-8 -*-

from abc import abstractmethod

from TM1link.Objects.TM1Object import TM1Object


class View(TM1Object):
    """ Abstraction of TM1 View. Parent class of NativeView and MDXView

    """

    def __init__(self, cube: str, name: str):
        """

        :param cube: name of the cube
        :param name: name of the view
        """
        self.cube = cube
        self.name = name

    @property
    @abstractmethod
    def body(self) -> str:
        pass

    @property
    @abstractmethod
    def mdx(self) -> str:
        pass
