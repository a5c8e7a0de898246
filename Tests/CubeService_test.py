import unittest

import responses

from TM1link.Exceptions import TM1linkVersionException
from TM1link.Objects import Cube, MDXView, NativeView, Subset
from .MockedTestBase import MockedTestBase


def subset_as_dict(dimension: str, name: str = "", elements=None, expression: str = None):
    return {
        "Name": name,
        "Hierarchy": {"Name": dimension, "Dimension": {"Name": dimension}},
        "Expression": expression,
        "Elements": [{"Name": element} for element in elements or []]}


class TestCubeService(MockedTestBase):

    def test_create(self):
        self.mock(responses.POST, "/Cubes", status=201)

        self.tm1.cubes.create(Cube("Sales", ["Version", "Region"], rules="SKIPCHECK;"))

        self.assertEqual(
            {"Name": "Sales",
             "Dimensions@odata.bind": ["Dimensions('Version')", "Dimensions('Region')"],
             "Rules": "SKIPCHECK;"},
            self.request_json(self.calls_to("POST", "Cubes")[0]))

    def test_get_skips_sandbox_dimension(self):
        self.mock(responses.GET, "/Cubes('Sales')", json={
            "Name": "Sales",
            "Rules": "",
            "Dimensions": [{"Name": "Sandboxes"}, {"Name": "Version"}, {"Name": "Region"}]})

        cube = self.tm1.cubes.get("Sales")

        self.assertEqual(["Version", "Region"], cube.dimensions)
        self.assertFalse(cube.has_rules)

    def test_get_dimension_names(self):
        self.mock(responses.GET, "/Cubes('Sales')/Dimensions", json={
            "value": [{"Name": "Sandboxes"}, {"Name": "Version"}, {"Name": "Measure"}]})

        self.assertEqual(["Version", "Measure"], self.tm1.cubes.get_dimension_names("Sales"))
        self.assertIn("$select=Name", self.rsps.calls[-1].request.url)

    def test_get_measure_dimension(self):
        self.mock(responses.GET, "/Cubes('Sales')/Dimensions",
                  json={"value": [{"Name": "Version"}, {"Name": "Measure"}]})
        self.assertEqual("Measure", self.tm1.cubes.get_measure_dimension("Sales"))

    def test_get_all_names_without_control_cubes(self):
        self.mock(responses.GET, "/Cubes", json={"value": [{"Name": "Sales"}]})

        self.assertEqual(["Sales"], self.tm1.cubes.get_all_names(skip_control_cubes=True))
        self.assertIn(
            "$filter=startswith(Name,'}') eq false and startswith(Name,'{') eq false",
            self.decoded_url(self.rsps.calls[-1]))

    def test_get_model_cubes_skips_both_control_prefixes(self):
        self.mock(responses.GET, "/Cubes", json={"value": [{"Name": "Sales", "Dimensions": []}]})

        self.assertEqual(["Sales"], [cube.name for cube in self.tm1.cubes.get_model_cubes()])
        self.assertIn(
            "startswith(Name,'}') eq false and startswith(Name,'{') eq false",
            self.decoded_url(self.rsps.calls[-1]))

    def test_get_control_cubes_matches_both_control_prefixes(self):
        self.mock(responses.GET, "/Cubes", json={"value": [{"Name": "}ClientGroups", "Dimensions": []}]})

        self.tm1.cubes.get_control_cubes()
        self.assertIn(
            "$filter=(startswith(Name,'}') or startswith(Name,'{'))",
            self.decoded_url(self.rsps.calls[-1]))

    def test_update_storage_dimension_order(self):
        self.mock(responses.POST, "/Cubes('Sales')/tm1.ReorderDimensions", json={"value": -23.07})

        change = self.tm1.cubes.update_storage_dimension_order("Sales", ["Region", "Version"])

        self.assertEqual(-23.07, change)
        self.assertEqual(
            {"Dimensions@odata.bind": ["Dimensions('Region')", "Dimensions('Version')"]},
            self.request_json(self.calls_to("POST", "ReorderDimensions")[0]))

    def test_load_and_unload(self):
        self.mock(responses.POST, "/Cubes('Sales')/tm1.Load", status=204)
        self.mock(responses.POST, "/Cubes('Sales')/tm1.Unload", status=204)

        self.tm1.cubes.load("Sales")
        self.tm1.cubes.unload("Sales")

    def test_check_rules(self):
        self.mock(responses.POST, "/Cubes('Sales')/tm1.CheckRules", json={"value": [{"LineNumber": 2}]})
        self.assertEqual([{"LineNumber": 2}], self.tm1.cubes.check_rules("Sales"))


class TestCubeServiceBelowMinimumVersion(MockedTestBase):
    mocked_server_version = "11.5.00000.20"

    def test_load_version_gate(self):
        with self.assertRaises(TM1linkVersionException):
            self.tm1.cubes.load("Sales")


class TestViewService(MockedTestBase):

    def native_view_as_dict(self):
        return {
            "@odata.type": "#ibm.tm1.api.v1.NativeView",
            "Name": "Default",
            "SuppressEmptyColumns": False,
            "SuppressEmptyRows": True,
            "Columns": [{"Subset": subset_as_dict("Year", elements=["2024"])}],
            "Rows": [{"Subset": subset_as_dict("Region", name="Europe", expression="{[Region].[Europe]}")}],
            "Titles": [{"Subset": subset_as_dict("Version", elements=["Actual"]), "Selected": {"Name": "Actual"}}]}

    def test_get_mdx_view(self):
        self.mock(responses.GET, "/Cubes('Sales')/Views('Top%20Regions')", json={
            "@odata.type": "#ibm.tm1.api.v1.MDXView",
            "Name": "Top Regions",
            "MDX": "SELECT {[Region].[Region].[Europe]} ON 0 FROM [Sales]"})

        view = self.tm1.cubes.views.get("Sales", "Top Regions")

        self.assertIsInstance(view, MDXView)
        self.assertEqual("Sales", view.cube)
        self.assertEqual("SELECT {[Region].[Region].[Europe]} ON 0 FROM [Sales]", view.mdx)

    def test_get_falls_back_to_native_view(self):
        self.mock(responses.GET, "/Cubes('Sales')/Views('Default')",
                  json={"@odata.type": "#ibm.tm1.api.v1.NativeView", "Name": "Default"})
        self.mock(responses.GET, "/Cubes('Sales')/Views('Default')", json=self.native_view_as_dict())

        view = self.tm1.cubes.views.get("Sales", "Default")

        self.assertIsInstance(view, NativeView)
        self.assertEqual(["Year"], [column.dimension_name for column in view.columns])
        self.assertEqual("Europe", view.rows[0].subset.name)
        self.assertEqual("Actual", view.titles[0].selected)
        self.assertEqual(
            'SELECT {[Year].[Year].[2024]} ON 0, NON EMPTY TM1SubsetToSet([Region].[Region],"Europe") ON 1 '
            'FROM [Sales] WHERE ([Version].[Version].[Actual])',
            view.mdx)

    def test_create_mdx_view(self):
        self.mock(responses.POST, "/Cubes('Sales')/PrivateViews", status=201)

        self.tm1.cubes.views.create(MDXView("Sales", "mine", "SELECT {} ON 0 FROM [Sales]"), private=True)

        self.assertEqual(
            {"@odata.type": "ibm.tm1.api.v1.MDXView", "Name": "mine", "MDX": "SELECT {} ON 0 FROM [Sales]"},
            self.request_json(self.calls_to("POST", "PrivateViews")[0]))

    def test_create_native_view(self):
        self.mock(responses.POST, "/Cubes('Sales')/Views", status=201)

        view = NativeView("Sales", "Default", suppress_empty_rows=True)
        view.add_column("Year")
        view.add_row("Region", Subset("Europe", "Region"))
        view.add_title("Version", "Actual")
        self.tm1.cubes.views.create(view)

        body = self.request_json(self.calls_to("POST", "Views")[0])
        self.assertEqual("ibm.tm1.api.v1.NativeView", body["@odata.type"])
        self.assertEqual(
            {"Subset@odata.bind": "Dimensions('Region')/Hierarchies('Region')/Subsets('Europe')"},
            body["Rows"][0])
        self.assertEqual(
            "Dimensions('Version')/Hierarchies('Version')/Elements('Actual')",
            body["Titles"][0]["Selected@odata.bind"])
        self.assertTrue(body["SuppressEmptyRows"])

    def test_get_all_names(self):
        self.mock(responses.GET, "/Cubes('Sales')/PrivateViews", json={"value": [{"Name": "mine"}]})
        self.mock(responses.GET, "/Cubes('Sales')/Views", json={"value": [{"Name": "Default"}]})

        self.assertEqual((["mine"], ["Default"]), self.tm1.cubes.views.get_all_names("Sales"))


if __name__ == "__main__":
    unittest.main()
