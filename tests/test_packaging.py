"""Kurulu paketin bağımlılık metadata'sı testleri."""

from importlib.metadata import requires


class TestDependencies:
    def test_mcp_major_version_is_bounded(self):
        mcp = [r for r in requires("solestock") if r.split("<")[0].split(">")[0].strip() == "mcp"]
        assert len(mcp) == 1
        assert "<2" in mcp[0]
