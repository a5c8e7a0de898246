import unittest

import responses

from TM1link.Objects import Sandbox
from .MockedTestBase import MockedTestBase


class TestSandboxService(MockedTestBase):

    def test_get_all(self):
        self.mock(responses.GET, "/Sandboxes", json={"value": [
            {"Name": "Plan A", "IncludeInSandboxDimension": True, "IsLoaded": True, "IsActive": False,
             "IsQueued": False},
            {"Name": "Plan B", "IncludeInSandboxDimension": False}]})

        sandboxes = self.tm1.sandboxes.get_all()

        self.assertEqual(["Plan A", "Plan B"], [sandbox.name for sandbox in sandboxes])
        self.assertTrue(sandboxes[0].loaded)
        self.assertFalse(sandboxes[1].include_in_sandbox_dimension)

    def test_create(self):
        self.mock(responses.POST, "/Sandboxes", status=201)

        self.tm1.sandboxes.create(Sandbox("Plan A", include_in_sandbox_dimension=False, loaded=True))

        self.assertEqual(
            {"Name": "Plan A", "IncludeInSandboxDimension": False},
            self.request_json(self.calls_to("POST", "Sandboxes")[0]))

    def test_exists(self):
        self.mock(responses.GET, "/Sandboxes('Plan%20A')", json={"Name": "Plan A"})
        self.mock(responses.GET, "/Sandboxes('Plan%20C')", status=404)

        self.assertTrue(self.tm1.sandboxes.exists("Plan A"))
        self.assertFalse(self.tm1.sandboxes.exists("Plan C"))

    def test_publish_and_reset(self):
        self.mock(responses.POST, "/Sandboxes('Plan%20A')/tm1.Publish", status=204)
        self.mock(responses.POST, "/Sandboxes('Plan%20A')/tm1.DiscardChanges", status=204)

        self.tm1.sandboxes.publish("Plan A")
        self.tm1.sandboxes.reset("Plan A")

    def test_merge(self):
        self.mock(responses.POST, "/Sandboxes('Plan%20A')/tm1.Merge", status=204)

        self.tm1.sandboxes.merge("Plan A", "Plan B", clean_after=True)

        self.assertEqual(
            {"Target@odata.bind": "Sandboxes('Plan B')", "CleanAfter": True},
            self.request_json(self.calls_to("POST", "tm1.Merge")[0]))

    def test_delete(self):
        self.mock(responses.DELETE, "/Sandboxes('Plan%20A')", status=204)
        self.tm1.sandboxes.delete("Plan A")


if __name__ == "__main__":
    unittest.main()
