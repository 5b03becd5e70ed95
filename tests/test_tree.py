import pytest

from corekit.tree import Node, TraverseFlags, TraverseType


def build():
    a = Node("A")
    b = a.append(Node("B"))
    c = a.append(Node("C"))
    d = b.append(Node("D"))
    e = b.append(Node("E"))
    return a, b, c, d, e


def collect(root, order, flags=TraverseFlags.ALL, max_depth=-1):
    seen = []
    root.traverse(order, flags, max_depth, lambda n: seen.append(n.data))
    return "".join(seen)


@pytest.mark.parametrize(
    "order, expected",
    [
        (TraverseType.PRE_ORDER, "ABDEC"),
        (TraverseType.POST_ORDER, "DEBCA"),
        (TraverseType.IN_ORDER, "DBEAC"),
        (TraverseType.LEVEL_ORDER, "ABCDE"),
    ],
)
def test_traverse_orders(order, expected):
    root = build()[0]
    assert collect(root, order) == expected


@pytest.mark.parametrize(
    "order, expected",
    [
        (TraverseType.PRE_ORDER, "ABC"),
        (TraverseType.POST_ORDER, "BCA"),
        (TraverseType.IN_ORDER, "BAC"),
        (TraverseType.LEVEL_ORDER, "ABC"),
    ],
)
def test_traverse_depth_limited(order, expected):
    root = build()[0]
    assert collect(root, order, max_depth=2) == expected


def test_traverse_flags_select_kinds():
    root = build()[0]
    assert collect(root, TraverseType.PRE_ORDER, TraverseFlags.LEAFS) == "DEC"
    assert collect(root, TraverseType.PRE_ORDER, TraverseFlags.NON_LEAFS) == "AB"


def test_traverse_stops_when_func_returns_true():
    root = build()[0]
    seen = []

    def stop_at_b(node):
        seen.append(node.data)
        return node.data == "B"

    assert root.traverse(TraverseType.PRE_ORDER, TraverseFlags.ALL, -1, stop_at_b) is True
    assert seen == ["A", "B"]


def test_traverse_rejects_bad_depth_and_flags():
    root = build()[0]
    with pytest.raises(ValueError):
        root.traverse(TraverseType.PRE_ORDER, TraverseFlags.ALL, 0, lambda n: False)
    with pytest.raises(ValueError):
        root.traverse(TraverseType.PRE_ORDER, 8, -1, lambda n: False)


def test_counts_and_heights():
    a, b, c, d, e = build()
    assert a.n_nodes(TraverseFlags.ALL) == 5
    assert a.n_nodes(TraverseFlags.LEAFS) == 3
    assert a.n_nodes(TraverseFlags.NON_LEAFS) == 2
    assert a.max_height() == 3
    assert d.depth() == 3
    assert a.depth() == 1
    assert a.n_children() == 2


def test_relations():
    a, b, c, d, e = build()
    assert e.get_root() is a
    assert a.is_ancestor(e)
    assert not c.is_ancestor(e)
    assert not e.is_ancestor(e)
    assert b.first_sibling() is b and b.last_sibling() is c
    assert d.next is e and e.prev is d and e.next is None
    assert a.last_child() is c
    assert a.nth_child(1) is c
    assert a.nth_child(5) is None


def test_insert_positions():
    root = Node("r")
    x, y, z, w = Node("x"), Node("y"), Node("z"), Node("w")
    root.insert(-1, x)
    root.insert(0, y)
    root.insert(1, z)
    root.insert(10, w)
    assert [n.data for n in root.children] == ["y", "z", "x", "w"]
    assert root.child_position(x) == 2


def test_insert_requires_root_node_and_own_sibling():
    a, b, c, d, e = build()
    with pytest.raises(ValueError):
        a.append(d)
    with pytest.raises(ValueError):
        a.insert_before(d, Node("n"))


def test_unlink_and_destroy():
    a, b, c, d, e = build()
    b.unlink()
    assert b.is_root()
    assert a.children == (c,)
    assert b.n_nodes(TraverseFlags.ALL) == 3
    b.destroy()
    assert b.is_leaf() and d.is_root()


def test_find_and_find_child():
    a, b, c, d, e = build()
    assert a.find(TraverseType.IN_ORDER, TraverseFlags.ALL, "E") is e
    assert a.find(TraverseType.PRE_ORDER, TraverseFlags.LEAFS, "B") is None
    assert a.find_child(TraverseFlags.NON_LEAFS, "B") is b
    assert a.find_child(TraverseFlags.LEAFS, "B") is None
    assert a.child_index("C") == 1
    assert a.child_index("Q") == -1


def test_child_position_rejects_foreign_node():
    a, b, c, d, e = build()
    with pytest.raises(ValueError):
        a.child_position(d)


def test_children_foreach_respects_flags():
    a = build()[0]
    seen = []
    a.children_foreach(TraverseFlags.LEAFS, lambda n: seen.append(n.data))
    assert seen == ["C"]
    seen.clear()
    a.children_foreach(TraverseFlags.ALL, lambda n: seen.append(n.data))
    assert seen == ["B", "C"]