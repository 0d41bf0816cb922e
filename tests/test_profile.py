from coroot.model.profile import (
    PROFILES,
    FlameGraphNode,
    ProfileAggregation,
    ProfileCategory,
    ProfileType,
)


def test_insert_keeps_children_sorted():
    root = FlameGraphNode(name="root")
    for name in ["gamma", "alpha", "beta", "delta"]:
        root.insert(name)
    names = [c.name for c in root.children]
    assert names == sorted(names)
    assert len(names) == 4


def test_insert_returns_existing_child():
    root = FlameGraphNode()
    first = root.insert("main")
    second = root.insert("main")
    assert first is second
    assert len(root.children) == 1


def test_insert_stack_accumulates_totals():
    root = FlameGraphNode(name="total")
    root.insert_stack(["leaf", "mid", "main"], 5)
    root.insert_stack(["other", "main"], 3)
    assert root.total == 8
    main = root.children[0]
    assert main.name == "main"
    assert main.total == 8
    assert main.self == 0
    mid = main.insert("mid")
    leaf = mid.insert("leaf")
    assert leaf.self == 5
    assert leaf.total == 5
    assert main.insert("other").self == 3


def test_insert_stack_truncates_at_space():
    root = FlameGraphNode()
    root.insert_stack(["handler (file.py:10)"], 1)
    assert [c.name for c in root.children] == ["handler"]


def test_insert_stack_keeps_leading_space():
    root = FlameGraphNode()
    root.insert_stack([" x"], 1)
    assert root.children[0].name == " x"


def test_insert_stack_comp():
    root = FlameGraphNode()
    root.insert_stack(["b", "a"], 2, comp=7)
    assert root.comp == 7
    assert root.children[0].comp == 7
    assert root.children[0].children[0].comp == 7


def test_diff_merges_comparison():
    base = FlameGraphNode(name="root")
    base.insert_stack(["x"], 3)
    comparison = FlameGraphNode(name="root")
    comparison.insert_stack(["x"], 2)
    comparison.insert_stack(["y"], 4)
    comparison.children[0].data = {"k": "v"}

    base.diff(comparison)
    assert base.comp == comparison.total
    assert base.total == 3 + comparison.total
    by_name = {c.name: c for c in base.children}
    assert by_name["x"].comp == 2
    assert by_name["x"].total == 5
    assert by_name["x"].data == {"k": "v"}
    assert by_name["y"].comp == 4
    assert by_name["y"].total == 4


def test_to_dict_leaf_has_null_children():
    root = FlameGraphNode(name="root")
    root.insert_stack(["leaf"], 1)
    d = root.to_dict()
    assert d["name"] == "root"
    assert d["children"][0]["name"] == "leaf"
    assert d["children"][0]["children"] is None
    assert d["data"] is None


def test_profiles_metadata():
    cpu = ProfileType("go:profile_cpu:nanoseconds")
    assert cpu is ProfileType.GO_CPU
    assert PROFILES[cpu].featured is True
    assert PROFILES[ProfileType("ebpf:cpu:nanoseconds")].featured is False
    inuse = PROFILES[ProfileType("go:heap_inuse_space:bytes")]
    assert inuse.aggregation is ProfileAggregation("avg")
    assert PROFILES[ProfileType("go:goroutine_goroutine:count")].category is ProfileCategory("")
    assert str(cpu) == "go:profile_cpu:nanoseconds"