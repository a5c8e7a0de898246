import json
import re
import unittest

import responses

from TM1link.Exceptions import TM1linkNotFound, TM1linkServerError
from TM1link.Utils import MdxQuery
from .MockedTestBase import MockedTestBase

CELLSET_ID = "cs1"


def axis(ordinal, hierarchy, names):
    return {
        "Ordinal": ordinal,
        "Cardinality": len(names),
        "Hierarchies": [{"Name": hierarchy, "UniqueName": f"[{hierarchy}].[{hierarchy}]",
                         "Dimension": {"Name": hierarchy}}],
        "Tuples": [{"Ordinal": position, "Members": [{"Name": name, "UniqueName": f"[{hierarchy}].[{name}]"}]}
                   for position, name in enumerate(names)]}


AXES = {
    "ID": CELLSET_ID,
    "Cube": {"Name": "Sales"},
    "Axes": [axis(0, "Year", ["2023", "2024"]), axis(1, "Region", ["Europe", "Asia"])]}


class TestCellService(MockedTestBase):

    def mock_create_cellset(self):
        self.mock(responses.POST, "/ExecuteMDX", status=201, json={"ID": CELLSET_ID})

    def mock_cellset_reads(self, cells, axes=None):
        """ the axes and the cells are read from the same entity with a different $expand """

        def callback(request):
            if "$expand=Cells" in request.url:
                return 200, {}, json.dumps({"ID": CELLSET_ID, "Cells": cells})
            return 200, {}, json.dumps(axes or AXES)

        self.rsps.add_callback(
            responses.GET, f"{self.base_url}/Cellsets('{CELLSET_ID}')", callback=callback,
            content_type="application/json")

    def mock_delete_cellset(self, status=204):
        self.mock(responses.DELETE, f"/Cellsets('{CELLSET_ID}')", status=status)

    def test_create_cellset(self):
        self.mock_create_cellset()
        query = MdxQuery("Sales").add_member_to_columns("Year", "Year", "2024")

        self.assertEqual(CELLSET_ID, self.tm1.cells.create_cellset(query, sandbox_name="Plan B"))

        call = self.calls_to("POST", "ExecuteMDX")[0]
        self.assertIn("!sandbox=Plan%20B", call.request.url)
        self.assertEqual({"MDX": "SELECT {([Year].[Year].[2024])} ON 0 FROM [Sales]"}, self.request_json(call))

    def test_execute_mdx(self):
        self.mock_create_cellset()
        self.mock_cellset_reads([{"Value": 1}, {"Value": 2}, {"Value": 3.5}, {"Value": None}])
        self.mock_delete_cellset()

        cellset = self.tm1.cells.execute_mdx("SELECT ...")

        self.assertEqual("Sales", cellset.cube_name)
        self.assertEqual([0, 1, 2, 3], [cell.ordinal for cell in cellset.cells])
        self.assertEqual([1.0, 2.0, 3.5, None], [cell.value for cell in cellset.cells])
        self.assertEqual(1, len(self.calls_to("DELETE", "Cellsets")))

    def test_execute_mdx_table(self):
        self.mock_create_cellset()
        self.mock_cellset_reads([{"Value": 1}, {"Value": 2}, {"Value": 3}, {"Value": 4}])
        self.mock_delete_cellset()

        table = self.tm1.cells.execute_mdx_table("SELECT ...")

        self.assertEqual(["[Year].[Year]", "[Region].[Region]", "Value"], table.headers)
        self.assertEqual(["2024", "Europe", 2.0], table.rows[1])
        self.assertEqual(["2023", "Asia", 3.0], table.rows[2])

    def test_execute_mdx_deletes_cellset_after_failure(self):
        self.mock_create_cellset()
        self.mock(responses.GET, f"/Cellsets('{CELLSET_ID}')", status=500, json={})
        self.mock_delete_cellset()

        with self.assertRaises(TM1linkServerError):
            self.tm1.cells.execute_mdx("SELECT ...")
        self.assertEqual(1, len(self.calls_to("DELETE", "Cellsets")))

    def test_execute_mdx_cellcount(self):
        self.mock_create_cellset()
        self.mock(responses.GET, f"/Cellsets('{CELLSET_ID}')/Cells/$count", body="12")
        self.mock_delete_cellset()

        self.assertEqual(12, self.tm1.cells.execute_mdx_cellcount("SELECT ..."))

    def test_delete_cellset_is_idempotent(self):
        self.mock_delete_cellset(status=404)
        self.tm1.cells.delete_cellset(CELLSET_ID)

    def test_cell_ordinals_after_skip(self):
        self.mock(responses.GET, f"/Cellsets('{CELLSET_ID}')", json={"Cells": [{"Value": 7}, {"Value": 8}]})

        cells = self.tm1.cells.extract_cellset_cells_raw(CELLSET_ID, top=2, skip=4)

        self.assertEqual([4, 5], [cell.ordinal for cell in cells])
        self.assertIn("$skip=4", self.rsps.calls[-1].request.url)
        self.assertIn("Ordinal", self.rsps.calls[-1].request.url)

    def test_extract_cellset_composition(self):
        self.mock(responses.GET, f"/Cellsets('{CELLSET_ID}')", json={
            "Cube": {"Name": "Sales"},
            "Axes": [
                {"Ordinal": 0, "Hierarchies": [{"UniqueName": "[Period].[Period]"}]},
                {"Ordinal": 1, "Hierarchies": [{"UniqueName": "[Region].[Region]"},
                                               {"UniqueName": "[Product].[Product]"}]},
                {"Ordinal": 2, "Hierarchies": [{"UniqueName": "[Version].[Version]"}]}]})

        cube, titles, rows, columns = self.tm1.cells.extract_cellset_composition(CELLSET_ID)

        self.assertEqual("Sales", cube)
        self.assertEqual(["[Version].[Version]"], titles)
        self.assertEqual(["[Region].[Region]", "[Product].[Product]"], rows)
        self.assertEqual(["[Period].[Period]"], columns)

    def test_build_cells_expand(self):
        properties = ["Value"]
        expand = self.tm1.cells._build_cells_expand(
            cell_properties=properties, top=10, skip_zeros=True, skip_rule_derived_cells=True)
        self.assertEqual(
            "Cells($select=Value,RuleDerived,Updateable,Ordinal;$top=10;"
            "$filter=Value ne 0 and Value ne null and Value ne '' and RuleDerived eq false)",
            expand)
        self.assertEqual(["Value"], properties)

    def test_extract_cells_parallel_matches_serial(self):
        values = [ordinal * 1.5 for ordinal in range(10)]
        self.mock(responses.GET, f"/Cellsets('{CELLSET_ID}')/Cells/$count", body="10")

        def callback(request):
            skip = re.search(r"\$skip=(\d+)", request.url)
            top = re.search(r"\$top=(\d+)", request.url)
            start = int(skip.group(1)) if skip else 0
            end = start + int(top.group(1)) if top else len(values)
            cells = [{"Value": value} for value in values[start:end]]
            return 200, {}, json.dumps({"Cells": cells})

        self.rsps.add_callback(
            responses.GET, f"{self.base_url}/Cellsets('{CELLSET_ID}')", callback=callback,
            content_type="application/json")

        parallel = self.tm1.cells.extract_cellset_cells_parallel(CELLSET_ID, max_workers=4)
        serial = self.tm1.cells.extract_cellset_cells_raw(CELLSET_ID)

        self.assertEqual(serial, parallel)
        self.assertEqual(values, [cell.value for cell in parallel])
        # 4 slabs of 3 cells and one serial read
        reads = [call for call in self.calls_to("GET", "Cellsets") if "$count" not in call.request.url]
        self.assertEqual(5, len(reads))

    def test_extract_cells_parallel_raises_slab_error(self):
        self.mock(responses.GET, f"/Cellsets('{CELLSET_ID}')/Cells/$count", body="4")

        def callback(request):
            if "$skip=2" in request.url:
                return 404, {}, json.dumps({"error": {"code": "1", "message": "gone"}})
            return 200, {}, json.dumps({"Cells": [{"Value": 1}, {"Value": 2}]})

        self.rsps.add_callback(
            responses.GET, f"{self.base_url}/Cellsets('{CELLSET_ID}')", callback=callback,
            content_type="application/json")

        with self.assertRaises(TM1linkNotFound):
            self.tm1.cells.extract_cellset_cells_parallel(CELLSET_ID, max_workers=2)

    def test_update_cellset_parallel(self):
        self.mock(responses.GET, f"/Cellsets('{CELLSET_ID}')/Cells/$count", body="10")
        self.mock(responses.PATCH, f"/Cellsets('{CELLSET_ID}')/Cells", status=204)

        self.tm1.cells.update_cellset_parallel(CELLSET_ID, list(range(100, 110)), max_workers=4)

        patches = self.calls_to("PATCH", "Cells")
        self.assertEqual(4, len(patches))
        written = sorted(
            (cell for call in patches for cell in self.request_json(call)),
            key=lambda cell: cell["Ordinal"])
        self.assertEqual([{"Ordinal": o, "Value": 100 + o} for o in range(10)], written)

    def test_write_values_through_cellset(self):
        self.mock_create_cellset()
        self.mock(responses.PATCH, f"/Cellsets('{CELLSET_ID}')/Cells", status=204)
        self.mock_delete_cellset()

        self.tm1.cells.write_values_through_cellset("SELECT ...", [5, "text"])

        patch = self.calls_to("PATCH", "Cells")[0]
        self.assertEqual([{"Ordinal": 0, "Value": 5}, {"Ordinal": 1, "Value": "text"}], self.request_json(patch))

    def test_write_values_through_cellset_deletes_cellset_after_failure(self):
        self.mock_create_cellset()
        self.mock(responses.PATCH, f"/Cellsets('{CELLSET_ID}')/Cells", status=500, json={})
        self.mock_delete_cellset()

        with self.assertRaises(TM1linkServerError):
            self.tm1.cells.write_values_through_cellset("SELECT ...", [5])
        self.assertEqual(1, len(self.calls_to("DELETE", "Cellsets")))

    def test_get_value(self):
        self.mock(responses.GET, "/Cubes('Sales')/Dimensions", json={"value": [{"Name": "Region"}, {"Name": "Year"}]})
        self.mock_create_cellset()
        self.mock_cellset_reads(
            [{"Value": 42}],
            axes={"ID": CELLSET_ID, "Axes": [axis(0, "Region", ["Europe"])]})
        self.mock_delete_cellset()

        self.assertEqual(42.0, self.tm1.cells.get_value("Sales", "Europe,Alt::2024"))

        mdx = self.request_json(self.calls_to("POST", "ExecuteMDX")[0])["MDX"]
        self.assertEqual("SELECT {([Region].[Region].[Europe],[Year].[Alt].[2024])} ON 0 FROM [Sales]", mdx)

    def test_get_value_with_too_many_elements(self):
        with self.assertRaises(ValueError):
            self.tm1.cells.get_value("Sales", ["Europe", "2024", "Actual"], dimensions=["Region", "Year"])

    def test_write_value(self):
        self.mock(responses.POST, "/Cubes('Sales')/tm1.Update", status=204)

        self.tm1.cells.write_value(10, "Sales", ("Europe", "2024"), dimensions=["Region", "Year"])

        self.assertEqual(
            {"Cells": [{"Tuple@odata.bind": [
                "Dimensions('Region')/Hierarchies('Region')/Elements('Europe')",
                "Dimensions('Year')/Hierarchies('Year')/Elements('2024')"]}],
                "Value": "10"},
            self.request_json(self.calls_to("POST", "tm1.Update")[0]))

    def test_write_values(self):
        self.mock(responses.POST, "/Cubes('Sales')/tm1.Update", status=204)

        self.tm1.cells.write_values(
            "Sales", {("Europe", "2024"): 1, ("Asia", "2024"): None}, dimensions=["Region", "Year"])

        updates = self.request_json(self.calls_to("POST", "tm1.Update")[0])
        self.assertEqual([1, ""], [update["Value"] for update in updates])


if __name__ == "__main__":
    unittest.main()
