import unittest

from TM1link.Exceptions import TM1linkInvalidArgument, TM1linkInvalidMDXException, TM1linkProtocolException
from TM1link.Objects import Cellset
from TM1link.Objects.Cellset import Cell
from TM1link.Utils import MdxMember, MdxQuery, MdxTuple, Table, build_table_from_cellset


class TestMdxQuery(unittest.TestCase):

    def test_columns_and_where(self):
        query = MdxQuery("Sales")
        query.add_member_to_columns("Year", "Year", "2024")
        query.add_member_to_where("Version", "Version", "Actual")
        self.assertEqual(
            "SELECT {([Year].[Year].[2024])} ON 0 FROM [Sales] WHERE ([Version].[Version].[Actual])",
            query.to_mdx())

    def test_rows_with_non_empty(self):
        query = MdxQuery("Sales") \
            .add_member_to_columns("Year", "Year", "2024") \
            .add_member_to_rows("Region", None, "Europe") \
            .add_member_to_rows("Region", None, "Asia") \
            .non_empty(1)
        self.assertEqual(
            "SELECT {([Year].[Year].[2024])} ON 0, "
            "NON EMPTY {([Region].[Region].[Europe]),([Region].[Region].[Asia])} ON 1 FROM [Sales]",
            query.to_mdx())

    def test_custom_expression_and_with(self):
        query = MdxQuery("Sales")
        query.add_with_statement("MEMBER [Year].[Year].[Total] AS 1")
        query.add_expression_to_axis(0, "{[Year].[Year].Members}")
        self.assertEqual(
            "WITH MEMBER [Year].[Year].[Total] AS 1 SELECT {[Year].[Year].Members} ON 0 FROM [Sales]",
            query.to_mdx())

    def test_tuple_of_several_members(self):
        mdx_tuple = MdxTuple([MdxMember("Region", "Region", "Europe"), MdxMember("Year", "Year", "2024")])
        self.assertEqual("([Region].[Region].[Europe], [Year].[Year].[2024])", mdx_tuple.to_mdx())

    def test_without_axes(self):
        with self.assertRaises(TM1linkInvalidMDXException):
            MdxQuery("Sales").add_member_to_where("Version", "Version", "Actual").to_mdx()

    def test_without_cube(self):
        with self.assertRaises(TM1linkInvalidMDXException):
            MdxQuery().add_member_to_columns("Year", "Year", "2024").to_mdx()

    def test_member_equality_ignores_case(self):
        self.assertEqual(MdxMember("Region", "Region", "Europe"), MdxMember("region", "REGION", "europe"))


class TestTable(unittest.TestCase):

    def setUp(self):
        self.table = Table.from_rows([
            ["Version", "Region", "Value"],
            ["Actual", "Europe", 10],
            ["Actual", "Asia", 20]])

    def test_from_rows(self):
        self.assertEqual(["Version", "Region", "Value"], self.table.headers)
        self.assertEqual(2, self.table.row_count)

    def test_from_rows_without_header(self):
        with self.assertRaises(TM1linkInvalidArgument):
            Table.from_rows([])

    def test_row_width_must_match(self):
        with self.assertRaises(TM1linkInvalidArgument):
            self.table.add_row(["Actual", 5])

    def test_add_and_read_column(self):
        self.table.add_column("Comment", ["a", "b"])
        self.assertEqual(["a", "b"], self.table.column("Comment"))
        with self.assertRaises(TM1linkInvalidArgument):
            self.table.add_column("Comment", ["c", "d"])
        with self.assertRaises(TM1linkInvalidArgument):
            self.table.add_column("Other", ["c"])

    def test_delete_row(self):
        self.table.delete_row(0)
        self.assertEqual([["Actual", "Asia", 20]], self.table.rows)
        with self.assertRaises(TM1linkInvalidArgument):
            self.table.delete_row(5)

    def test_sort_by_columns(self):
        self.table.sort_by_columns(["Region"])
        self.assertEqual(["Asia", "Europe"], self.table.column("Region"))

    def test_find_uniform_column_indices(self):
        self.assertEqual([0], self.table.find_uniform_column_indices())
        single_row = Table(["Region", "Value"], [["Europe", 1]])
        self.assertEqual([0, 1], single_row.find_uniform_column_indices())

    def test_to_mdx_moves_uniform_columns_to_where(self):
        self.assertEqual(
            "SELECT {([Region].[Region].[Europe]),([Region].[Region].[Asia])} ON 0 "
            "FROM [Sales] WHERE ([Version].[Version].[Actual])",
            self.table.to_mdx("Sales"))

    def test_to_mdx_single_row(self):
        table = Table(["Version", "[Region].[Alt]", "Value"], [["Actual", "Europe", 1]])
        self.assertEqual(
            "SELECT {([Version].[Version].[Actual])} ON 0 FROM [Sales] WHERE ([Region].[Alt].[Europe])",
            table.to_mdx("Sales"))

    def test_to_mdx_requires_rows(self):
        with self.assertRaises(TM1linkInvalidMDXException):
            Table(["Region", "Value"]).to_mdx("Sales")
        with self.assertRaises(TM1linkInvalidMDXException):
            Table(["Value"], [[1]]).to_mdx("Sales")

    def test_to_csv(self):
        table = Table(["Region", "Value"], [["Europe, West", 1.5], ['Say "hi"', 2]])
        self.assertEqual(
            'Region,Value\n"Europe, West",1.5\n"Say ""hi""",2\n',
            table.to_csv())


class TestBuildTableFromCellset(unittest.TestCase):

    @staticmethod
    def axis(ordinal, hierarchy, names):
        return {
            "Ordinal": ordinal,
            "Cardinality": len(names),
            "Hierarchies": [{"Name": hierarchy, "UniqueName": f"[{hierarchy}].[{hierarchy}]"}],
            "Tuples": [{"Ordinal": position, "Members": [{"Name": name}]} for position, name in enumerate(names)]}

    def test_cells_map_row_major(self):
        cellset = Cellset.from_dict({
            "ID": "abc",
            "Cube": {"Name": "Sales"},
            "Axes": [
                self.axis(0, "Year", ["2023", "2024"]),
                self.axis(1, "Region", ["Europe", "Asia", "America"])]})
        cellset.cells = [Cell(ordinal, float(ordinal)) for ordinal in range(6)]

        table = build_table_from_cellset(cellset)

        self.assertEqual(["[Year].[Year]", "[Region].[Region]", "Value"], table.headers)
        self.assertEqual([
            ["2023", "Europe", 0.0],
            ["2024", "Europe", 1.0],
            ["2023", "Asia", 2.0],
            ["2024", "Asia", 3.0],
            ["2023", "America", 4.0],
            ["2024", "America", 5.0]], table.rows)

    def test_axes_sorted_by_ordinal(self):
        cellset = Cellset.from_dict({
            "ID": "abc",
            "Axes": [self.axis(1, "Region", ["Europe"]), self.axis(0, "Year", ["2024"])]})
        self.assertEqual([0, 1], [axis.ordinal for axis in cellset.axes])

    def test_cardinality_mismatch(self):
        axis = self.axis(0, "Year", ["2023", "2024"])
        axis["Cardinality"] = 3
        with self.assertRaises(TM1linkProtocolException):
            Cellset.from_dict({"ID": "abc", "Axes": [axis]})

    def test_cell_count_validation(self):
        cellset = Cellset.from_dict({"ID": "abc", "Axes": [self.axis(0, "Year", ["2023", "2024"])]})
        cellset.cells = [Cell(0, 1.0)]
        with self.assertRaises(TM1linkProtocolException):
            cellset.validate_cells()

    def test_cell_values_are_floats(self):
        self.assertEqual(5.0, Cell.from_dict({"Ordinal": 0, "Value": 5}, 0).value)
        self.assertIsInstance(Cell.from_dict({"Value": 5}, 3).value, float)
        self.assertEqual(3, Cell.from_dict({"Value": "text"}, 3).ordinal)


if __name__ == "__main__":
    unittest.main()
