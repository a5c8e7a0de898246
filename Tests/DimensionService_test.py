import unittest

import responses

from TM1link.Exceptions import TM1linkConflict, TM1linkServerError
from TM1link.Objects import Dimension, Hierarchy
from .MockedTestBase import MockedTestBase

ELEMENT_ATTRIBUTES = "/Dimensions('Region')/Hierarchies('Region')/ElementAttributes"


class TestDimension(unittest.TestCase):

    def build_dimension(self) -> Dimension:
        hierarchy = Hierarchy("Region", "Region")
        hierarchy.add_element("World", "Consolidated")
        hierarchy.add_element("Europe", "Numeric")
        hierarchy.add_edge("World", "Europe", 1)
        hierarchy.add_element_attribute("Currency", "String")
        return Dimension("Region", [hierarchy, Hierarchy("Leaves", "Region")])

    def test_body_skips_leaves_and_attributes(self):
        body = self.build_dimension().body_as_dict

        self.assertEqual("[Region]", body["UniqueName"])
        self.assertEqual(["Region"], [hierarchy["Name"] for hierarchy in body["Hierarchies"]])
        hierarchy = body["Hierarchies"][0]
        self.assertEqual([{"Name": "World", "Type": "Consolidated"}, {"Name": "Europe", "Type": "Numeric"}],
                         hierarchy["Elements"])
        self.assertEqual([{"ParentName": "World", "ComponentName": "Europe", "Weight": 1}], hierarchy["Edges"])
        self.assertNotIn("ElementAttributes", hierarchy)

    def test_rename_renames_same_named_hierarchy(self):
        dimension = self.build_dimension()
        dimension.name = "Geography"

        self.assertEqual(["Geography", "Leaves"], dimension.hierarchy_names)
        self.assertEqual("Geography", dimension["leaves"].dimension_name)

    def test_remove_element_drops_edges(self):
        hierarchy = self.build_dimension()["Region"]
        hierarchy.remove_element(" europe")
        self.assertEqual({}, dict(hierarchy.edges))

    def test_leaves_cannot_be_removed(self):
        with self.assertRaises(ValueError):
            self.build_dimension().remove_hierarchy("Leaves")


class TestDimensionService(MockedTestBase):

    def dimension(self) -> Dimension:
        hierarchy = Hierarchy("Region", "Region")
        hierarchy.add_element("Europe", "Numeric")
        hierarchy.add_element_attribute("Currency", "String")
        return Dimension("Region", [hierarchy])

    def test_create(self):
        self.mock(responses.GET, "/Dimensions('Region')", status=404)
        self.mock(responses.POST, "/Dimensions", status=201)
        self.mock(responses.GET, ELEMENT_ATTRIBUTES, json={"value": []})
        self.mock(responses.POST, ELEMENT_ATTRIBUTES, status=201)

        self.tm1.dimensions.create(self.dimension())

        self.assertEqual("Region", self.request_json(self.calls_to("POST", "/Dimensions")[0])["Name"])
        self.assertEqual(
            {"Name": "Currency", "Type": "String"},
            self.request_json(self.calls_to("POST", "ElementAttributes")[0]))

    def test_create_existing_dimension(self):
        self.mock(responses.GET, "/Dimensions('Region')", json={"Name": "Region"})

        with self.assertRaises(TM1linkConflict):
            self.tm1.dimensions.create(self.dimension())

    def test_create_rolls_back_on_failure(self):
        self.mock(responses.GET, "/Dimensions('Region')", status=404)
        self.mock(responses.POST, "/Dimensions", status=201)
        self.mock(responses.GET, ELEMENT_ATTRIBUTES, status=500, json={})
        self.mock(responses.GET, "/Dimensions('Region')", json={"Name": "Region"})
        self.mock(responses.DELETE, "/Dimensions('Region')", status=204)

        with self.assertRaises(TM1linkServerError):
            self.tm1.dimensions.create(self.dimension())

        self.assertEqual(1, len(self.calls_to("DELETE", "Dimensions")))

    def test_update_removes_dropped_hierarchies(self):
        self.mock(responses.GET, "/Dimensions('Region')/Hierarchies",
                  json={"value": [{"Name": "Region"}, {"Name": "Leaves"}, {"Name": "Old"}]})
        self.mock(responses.PATCH, "/Dimensions('Region')/Hierarchies('Region')", status=204)
        self.mock(responses.GET, ELEMENT_ATTRIBUTES, json={"value": [{"Name": "Currency", "Type": "Numeric"}]})
        self.mock(responses.DELETE,
                  "/Dimensions('%7DElementAttributes_Region')/Hierarchies('%7DElementAttributes_Region')"
                  "/Elements('Currency')",
                  status=204)
        self.mock(responses.POST, ELEMENT_ATTRIBUTES, status=201)
        self.mock(responses.DELETE, "/Dimensions('Region')/Hierarchies('Old')", status=204)

        self.tm1.dimensions.update(self.dimension())

        self.assertEqual("Region", self.request_json(self.calls_to("PATCH", "Hierarchies")[0])["Name"])
        self.assertEqual(2, len(self.calls_to("DELETE", "/Dimensions")))

    def test_get_all_names_without_control_dimensions(self):
        self.mock(responses.GET, "/Dimensions", json={"value": [{"Name": "Region"}]})

        self.assertEqual(["Region"], self.tm1.dimensions.get_all_names(skip_control_dims=True))
        self.assertIn(
            "$filter=startswith(Name,'}') eq false and startswith(Name,'{') eq false",
            self.decoded_url(self.rsps.calls[-1]))

    def test_get(self):
        self.mock(responses.GET, "/Dimensions('Region')", json={
            "Name": "Region",
            "Hierarchies": [{
                "Name": "Region",
                "Elements": [{"Name": "World", "Type": "Consolidated"}, {"Name": "Europe", "Type": "Numeric"}],
                "Edges": [{"ParentName": "World", "ComponentName": "Europe", "Weight": 1}],
                "ElementAttributes": [{"Name": "Currency", "Type": "String"}],
                "Subsets": [{"Name": "All"}],
                "DefaultMember": {"Name": "World"}}]})

        dimension = self.tm1.dimensions.get("Region")

        hierarchy = dimension.default_hierarchy
        self.assertTrue(hierarchy.get_element("world").is_consolidated)
        self.assertEqual(1, hierarchy.edges[("World", "Europe")])
        self.assertEqual(["All"], hierarchy.subsets)
        self.assertEqual("World", hierarchy.default_member)


if __name__ == "__main__":
    unittest.main()
