import unittest

import responses

from TM1link.Exceptions import TM1linkInvalidArgument, TM1linkNotSecurityAdminException
from TM1link.Objects import User, UserType
from .MockedTestBase import MockedTestBase


class TestUser(unittest.TestCase):

    def test_user_type_from_groups(self):
        self.assertIs(UserType.ADMIN, User("Marius", groups=["Sales", "ADMIN"]).user_type)
        self.assertIs(UserType.SECURITY_ADMIN, User("Marius", groups=["Security Admin"]).user_type)
        self.assertIs(UserType.USER, User("Marius", groups=["Sales"]).user_type)

    def test_user_type_adds_group(self):
        user = User("Marius", groups=["Sales"], user_type="DataAdmin")

        self.assertIs(UserType.DATA_ADMIN, user.user_type)
        self.assertEqual(["Sales", "DataAdmin"], user.groups)

    def test_user_type_lookup(self):
        self.assertIs(UserType.OPERATIONS_ADMIN, UserType("OperationsAdmin"))
        self.assertIs(UserType.SECURITY_ADMIN, UserType(1))
        self.assertEqual("SecurityAdmin", str(UserType.SECURITY_ADMIN))
        with self.assertRaises(ValueError):
            UserType("Superuser")

    def test_body(self):
        user = User("Marius", groups=["Sales"], password="apple")

        self.assertEqual({
            "Name": "Marius",
            "FriendlyName": "Marius",
            "Enabled": True,
            "Type": "User",
            "Password": "apple",
            "Groups@odata.bind": ["Groups('Sales')"]},
            user.body_as_dict)

    def test_body_without_password(self):
        self.assertNotIn("Password", User("Marius", groups=[]).body_as_dict)

    def test_from_dict(self):
        user = User.from_dict({
            "Name": "Marius Wirtz",
            "FriendlyName": "Marius",
            "Enabled": False,
            "Type": "Admin",
            "Groups": [{"Name": "Admin"}, {"Name": "Sales"}]})

        self.assertEqual("Marius", user.friendly_name)
        self.assertFalse(user.enabled)
        self.assertTrue(user.is_admin)


class TestSecurityService(MockedTestBase):

    def mock_name_lookup(self, entity_set: str, name: str):
        self.mock(responses.GET, f"/{entity_set}", json={"value": [{"Name": name}]})

    def test_determine_actual_user_name(self):
        self.mock_name_lookup("Users", "Marius Wirtz")

        self.assertEqual("Marius Wirtz", self.tm1.security.determine_actual_user_name("marius wirtz"))

        url = self.decoded_url(self.rsps.calls[-1])
        self.assertIn("$filter=tolower(replace(Name, ' ', '')) eq 'mariuswirtz'", url)

    def test_determine_actual_user_name_not_found(self):
        self.mock(responses.GET, "/Users", json={"value": []})

        with self.assertRaises(TM1linkInvalidArgument):
            self.tm1.security.determine_actual_user_name("nobody")

    def test_get_user(self):
        self.mock_name_lookup("Users", "Marius Wirtz")
        self.mock(responses.GET, "/Users('Marius%20Wirtz')", json={
            "Name": "Marius Wirtz", "FriendlyName": "Marius", "Enabled": True, "Type": "User",
            "Groups": [{"Name": "Sales"}]})

        user = self.tm1.security.get_user("marius wirtz")

        self.assertEqual("Marius Wirtz", user.name)
        self.assertEqual(["Sales"], user.groups)
        self.assertIn("$expand=Groups", self.decoded_url(self.rsps.calls[-1]))

    def test_create_user(self):
        self.mock(responses.POST, "/Users", status=201)

        self.tm1.security.create_user(User("Marius", groups=["Sales"], user_type=UserType.ADMIN))

        body = self.request_json(self.calls_to("POST", "/Users")[0])
        self.assertEqual("Admin", body["Type"])
        self.assertEqual(["Groups('Sales')", "Groups('Admin')"], body["Groups@odata.bind"])

    def test_update_user_removes_dropped_groups(self):
        self.mock_name_lookup("Users", "Marius")
        self.mock_name_lookup("Users", "Marius")
        self.mock(responses.GET, "/Users('Marius')/Groups", json={"value": [{"Name": "Sales"}, {"Name": "Finance"}]})
        self.mock_name_lookup("Users", "Marius")
        self.mock_name_lookup("Groups", "Finance")
        self.mock(responses.DELETE, "/Users('Marius')/Groups", status=204)
        self.mock(responses.PATCH, "/Users('Marius')", status=204)

        self.tm1.security.update_user(User("marius", groups=["sales"]))

        removed = self.decoded_url(self.calls_to("DELETE", "Groups")[0])
        self.assertTrue(removed.endswith("/Users('Marius')/Groups?$id=Groups('Finance')"))
        self.assertEqual("Marius", self.request_json(self.calls_to("PATCH", "Users")[0])["Name"])

    def test_add_user_to_groups(self):
        self.mock_name_lookup("Users", "Marius")
        self.mock_name_lookup("Groups", "Sales")
        self.mock(responses.PATCH, "/Users('Marius')", status=204)

        self.tm1.security.add_user_to_groups("marius", ["sales"])

        self.assertEqual(
            {"Name": "Marius", "Groups@odata.bind": ["Groups('Sales')"]},
            self.request_json(self.calls_to("PATCH", "Users")[0]))

    def test_get_user_names_from_group(self):
        self.mock(responses.GET, "/Groups('Sales')/Users", json={"value": [{"Name": "Marius"}, {"Name": "Anna"}]})
        self.assertEqual(["Marius", "Anna"], self.tm1.security.get_user_names_from_group("Sales"))

    def test_get_custom_security_groups(self):
        self.mock(responses.GET, "/Groups", json={"value": [
            {"Name": "ADMIN"}, {"Name": "DataAdmin"}, {"Name": "SecurityAdmin"}, {"Name": "OperationsAdmin"},
            {"Name": "}tp_Everyone"}, {"Name": "Sales"}, {"Name": "Finance"}]})

        self.assertEqual(["Sales", "Finance"], self.tm1.security.get_custom_security_groups())

    def test_group_exists(self):
        self.mock(responses.GET, "/Groups('Sales')", json={"Name": "Sales"})
        self.mock(responses.GET, "/Groups('Marketing')", status=404)

        self.assertTrue(self.tm1.security.group_exists("Sales"))
        self.assertFalse(self.tm1.security.group_exists("Marketing"))

    def test_security_refresh(self):
        self.mock(responses.POST, "/Processes", status=201)
        temporary_process = r"/Processes\('(?:}|%7D)TM1link[^']+'\)"
        self.rsps.add(responses.POST, self.re_url(temporary_process + r"/tm1\.Execute"), status=204)
        self.rsps.add(responses.DELETE, self.re_url(temporary_process), status=204)

        self.tm1.security.security_refresh()

        created = self.request_json(self.calls_to("POST", "/Processes")[0])
        self.assertTrue(created["PrologProcedure"].endswith("SecurityRefresh;"))


class TestSecurityServiceWithoutSecurityAdmin(MockedTestBase):

    def get_tm1_kwargs(self):
        kwargs = super().get_tm1_kwargs()
        kwargs["user"] = "planner"
        return kwargs

    def test_delete_group(self):
        self.mock(responses.GET, "/ActiveUser/Groups", json={"value": [{"Name": "DataAdmin"}]})

        with self.assertRaises(TM1linkNotSecurityAdminException):
            self.tm1.security.delete_group("Sales")

    def test_security_admin_may_delete(self):
        self.mock(responses.GET, "/ActiveUser/Groups", json={"value": [{"Name": "SecurityAdmin"}]})
        self.mock(responses.GET, "/Groups", json={"value": [{"Name": "Sales"}]})
        self.mock(responses.DELETE, "/Groups('Sales')", status=204)

        self.tm1.security.delete_group("sales")


if __name__ == "__main__":
    unittest.main()
