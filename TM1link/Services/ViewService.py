# -*- coding: utf-8 -*-

from typing import List, Tuple, Union

from requests import Response

from TM1link.Objects.MDXView import MDXView
from TM1link.Objects.NativeView import NativeView
from TM1link.Objects.View import View
from TM1link.Services.ObjectService import ObjectService
from TM1link.Services.RestService import RestService
from TM1link.Utils import format_url

NATIVE_VIEW_EXPAND = (
    "tm1.NativeView/Rows/Subset($expand=Hierarchy($select=Name;"
    "$expand=Dimension($select=Name)),Elements($select=Name);"
    "$select=Expression,UniqueName,Name,Alias),"
    "tm1.NativeView/Columns/Subset($expand=Hierarchy($select=Name;"
    "$expand=Dimension($select=Name)),Elements($select=Name);"
    "$select=Expression,UniqueName,Name,Alias),"
    "tm1.NativeView/Titles/Subset($expand=Hierarchy($select=Name;"
    "$expand=Dimension($select=Name)),Elements($select=Name);"
    "$select=Expression,UniqueName,Name,Alias),"
    "tm1.NativeView/Titles/Selected($select=Name)")


def _view_type(private: bool) -> str:
    return "PrivateViews" if private else "Views"


class ViewService(ObjectService):
    """ Public and private cube views, MDX based or subset based (native)

    """

    def __init__(self, rest: RestService):
        super().__init__(rest)

    def create(self, view: Union[MDXView, NativeView], private: bool = False, **kwargs) -> Response:
        """ POST a view to its cube

        :param view: instance of subclass of TM1link.View (TM1link.NativeView or TM1link.MDXView)
        :param private: boolean

        :return: Response
        """
        url = format_url("/Cubes('{}')/{}", view.cube, _view_type(private))
        return self._rest.POST(url, view.body, **kwargs)

    def exists(self, cube_name: str, view_name: str, private: bool = False, **kwargs) -> bool:
        """ Checks if view exists

        :param cube_name: cube
        :param view_name: view
        :param private: boolean

        :return boolean
        """
        url = format_url("/Cubes('{}')/{}('{}')", cube_name, _view_type(private), view_name)
        return self._exists(url, **kwargs)

    def get(self, cube_name: str, view_name: str, private: bool = False, **kwargs) -> View:
        """ get MDXView or NativeView, depending on the type of the view on the server """
        url = format_url("/Cubes('{}')/{}('{}')?$expand=*", cube_name, _view_type(private), view_name)
        view_as_dict = self._rest.GET(url, **kwargs).json()
        if "MDX" in view_as_dict:
            return MDXView.from_dict(view_as_dict, cube_name)
        return self.get_native_view(cube_name, view_name, private, **kwargs)

    def get_native_view(self, cube_name: str, view_name: str, private: bool = False, **kwargs) -> NativeView:
        """ Read a view built from subsets

        :param cube_name: cube
        :param view_name: view
        :param private: True for a private view

        :return: instance of TM1link.NativeView
        """
        url = format_url("/Cubes('{}')/{}('{}')?$expand=", cube_name, _view_type(private), view_name)
        response = self._rest.GET(url + NATIVE_VIEW_EXPAND, **kwargs)
        return NativeView.from_dict(response.json(), cube_name)

    def get_mdx_view(self, cube_name: str, view_name: str, private: bool = False, **kwargs) -> MDXView:
        """ Read a view defined by an MDX query

        :param cube_name: cube
        :param view_name: view
        :param private: boolean

        :return: instance of TM1link.MDXView
        """
        url = format_url("/Cubes('{}')/{}('{}')", cube_name, _view_type(private), view_name)
        response = self._rest.GET(url, **kwargs)
        return MDXView.from_dict(response.json(), cube_name)

    def get_all(self, cube_name: str, **kwargs) -> Tuple[List[View], List[View]]:
        """ Private and public views of a cube

        :param cube_name: cube
        :return: 2 Lists of TM1link.View instances: private views, public views
        """
        private_views, public_views = [], []
        for private, views in ((True, private_views), (False, public_views)):
            url = format_url("/Cubes('{}')/{}?$expand=", cube_name, _view_type(private))
            response = self._rest.GET(url + NATIVE_VIEW_EXPAND, **kwargs)
            for view_as_dict in response.json()['value']:
                if view_as_dict.get('@odata.type') == '#ibm.tm1.api.v1.MDXView':
                    views.append(MDXView.from_dict(view_as_dict, cube_name))
                else:
                    views.append(NativeView.from_dict(view_as_dict, cube_name))
        return private_views, public_views

    def get_all_names(self, cube_name: str, **kwargs) -> Tuple[List[str], List[str]]:
        """

        :param cube_name:
        :return: private view names, public view names
        """
        private_views, public_views = [], []
        for private, views in ((True, private_views), (False, public_views)):
            url = format_url("/Cubes('{}')/{}?$select=Name", cube_name, _view_type(private))
            response = self._rest.GET(url, **kwargs)
            views.extend(view['Name'] for view in response.json()['value'])
        return private_views, public_views

    def update(self, view: Union[MDXView, NativeView], private: bool = False, **kwargs) -> Response:
        """ PATCH a view with its current definition

        :param view: instance of TM1link.NativeView or TM1link.MDXView
        :param private: boolean
        :return: response
        """
        url = format_url("/Cubes('{}')/{}('{}')", view.cube, _view_type(private), view.name)
        return self._rest.PATCH(url, view.body, **kwargs)

    def update_or_create(self, view: Union[MDXView, NativeView], private: bool = False, **kwargs) -> Response:
        if self.exists(view.cube, view.name, private=private, **kwargs):
            return self.update(view, private=private, **kwargs)
        return self.create(view, private=private, **kwargs)

    def delete(self, cube_name: str, view_name: str, private: bool = False, **kwargs) -> Response:
        """ Delete a public or private view

        :param cube_name: cube
        :param view_name: view
        :param private: Boolean

        :return: response
        """
        url = format_url("/Cubes('{}')/{}('{}')", cube_name, _view_type(private), view_name)
        return self._rest.DELETE(url, **kwargs)
