from __future__ import annotations

import libcst as cst

from strictify.frontend.semantics import BindingKind, DeclarationKind


def _names(model, value: str) -> list[cst.Name]:
    return [node for node in model.walk() if isinstance(node, cst.Name) and node.value == value]


def _function(model, name: str) -> cst.FunctionDef:
    for node in model.walk():
        if isinstance(node, cst.FunctionDef) and node.name.value == name:
            return node
    raise AssertionError(f"no function {name}")


def test_walk_is_pre_order(make_project) -> None:
    project = make_project({"mod.py": "x = f(a)\n"})
    model = project.files[0].semantics()
    kinds = [type(node).__name__ for node in model.walk() if isinstance(node, (cst.Name, cst.Call, cst.Assign))]
    assert kinds == ["Assign", "Name", "Call", "Name", "Name"]


def test_declarations_resolve_from_every_reference(make_project) -> None:
    project = make_project(
        {
            "mod.py": """
            def f(a):
                total = None
                total = a
                return total
            """
        }
    )
    model = project.files[0].semantics()
    param_refs = _names(model, "a")
    declarations = {model.declaration_for(name) for name in param_refs}
    assert len(declarations) == 1
    (param,) = declarations
    assert param.kind is DeclarationKind.PARAMETER
    assert param.key.offset == model.offset(param_refs[0])

    total_refs = _names(model, "total")
    totals = {model.declaration_for(name) for name in total_refs}
    assert len(totals) == 1
    (total,) = totals
    assert total.kind is DeclarationKind.VARIABLE
    assert total.name_node is total_refs[0]
    assert isinstance(model.initializer(total), cst.Name)


def test_bindings_classify_plain_and_other(make_project) -> None:
    project = make_project(
        {
            "mod.py": """
            def f(items):
                acc = None
                acc = 1
                acc += 2
                for acc in items:
                    pass
                return acc
            """
        }
    )
    model = project.files[0].semantics()
    declaration = model.declaration_for(_names(model, "acc")[0])
    kinds = [binding.kind for binding in model.bindings(declaration)]
    assert kinds == [BindingKind.PLAIN, BindingKind.OTHER, BindingKind.OTHER]


def test_class_attributes_are_not_declarations(make_project) -> None:
    project = make_project({"mod.py": "class C:\n    x = None\n"})
    model = project.files[0].semantics()
    assert model.declaration_for(_names(model, "x")[0]) is None


def test_call_sites_cover_module_and_receiver_calls(make_project) -> None:
    project = make_project(
        {
            "mod.py": """
            def helper(value, scale=1):
                return value * scale


            helper(1)
            helper(2.0, scale=3)


            class Box:
                def put(self, item):
                    return item

                def fill(self):
                    self.put("x")
            """
        }
    )
    model = project.files[0].semantics()
    helper = _function(model, "helper")
    sites = model.call_sites(helper)
    assert len(sites) == 2
    value, scale = helper.params.params
    assert isinstance(sites[0].bind(helper, value).value, cst.Integer)
    assert isinstance(sites[1].bind(helper, scale).value, cst.Integer)
    assert sites[0].bind(helper, scale).value is None

    put = _function(model, "put")
    (site,) = model.call_sites(put)
    assert site.receiver_offset == 1
    item = put.params.params[1]
    assert isinstance(site.bind(put, item).value, cst.SimpleString)


def test_star_arguments_make_binding_ambiguous(make_project) -> None:
    project = make_project(
        {
            "mod.py": """
            def f(a, b):
                pass


            args = (1, 2)
            f(*args)
            """
        }
    )
    model = project.files[0].semantics()
    function_def = _function(model, "f")
    (site,) = model.call_sites(function_def)
    bound = site.bind(function_def, function_def.params.params[1])
    assert bound.ambiguous
    assert bound.value is None


def test_call_sites_follow_imports_across_modules(make_project) -> None:
    project = make_project(
        {
            "pkg/__init__.py": "",
            "pkg/util.py": "def scale(value):\n    return value\n",
            "pkg/app.py": "from pkg.util import scale\n\nscale(3)\n",
            "pkg/rel.py": "from .util import scale as resize\n\nresize(4)\n",
        }
    )
    util = project.source_file(project.root / "pkg/util.py")
    model = util.semantics()
    sites = model.call_sites(_function(model, "scale"))
    assert len(sites) == 2
    assert all(site.foreign for site in sites)
    assert sorted(site.call.args[0].value.value for site in sites) == ["3", "4"]


def test_enclosing_statement_of_parameter_is_function(make_project) -> None:
    project = make_project({"mod.py": "def f(a):\n    pass\n"})
    model = project.files[0].semantics()
    (name,) = _names(model, "a")
    assert isinstance(model.enclosing_statement(name), cst.FunctionDef)
    assert model.location(name) == (1, 7)


def test_names_bound_before_a_statement(make_project) -> None:
    project = make_project(
        {
            "mod.py": """
            from typing import Sequence


            def f(a):
                pass


            class Later:
                pass


            def g():
                class Local:
                    pass
            """
        }
    )
    model = project.files[0].semantics()
    statement = model.enclosing_statement(_function(model, "f").params.params[0])
    assert model.is_bound_before("Sequence", statement)
    assert model.is_bound_before("len", statement)
    assert not model.is_bound_before("Later", statement)
    assert not model.is_bound_before("Local", statement)
