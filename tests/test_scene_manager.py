"""Unit tests for the SceneManager.

Tests cover:
- Material registration (Lambertian, Metal, Dielectric)
- Material type tracking and lookup
- Sphere addition with materials
- Convenience methods (add_*_sphere)
- Scene serialization (to_config, from_config, to_dict, from_dict)
- Scene clearing
- GPU-side material type dispatch
"""

import json

import pytest
import taichi as ti


@pytest.fixture
def fresh_scene():
    """Create a fresh SceneManager for each test."""
    from spheretracer.scene.manager import SceneManager

    return SceneManager()


class TestMaterialRegistration:
    """Tests for unified material IDs."""

    def test_ids_are_sequential_across_types(self, fresh_scene):
        from spheretracer.scene.manager import MaterialType

        ground = fresh_scene.add_lambertian_material((0.8, 0.8, 0.0))
        gold = fresh_scene.add_metal_material((0.8, 0.6, 0.2), fuzz=0.3)
        glass = fresh_scene.add_dielectric_material(1.5)
        another = fresh_scene.add_lambertian_material((0.1, 0.2, 0.5))

        assert (ground, gold, glass, another) == (0, 1, 2, 3)
        assert fresh_scene.get_material_count() == 4
        assert fresh_scene.get_material_type_python(gold) == MaterialType.METAL
        assert fresh_scene.get_material_info(another).type_index == 1
        assert fresh_scene.get_material_info(glass).params == {"ior": 1.5}

    def test_unknown_material_lookup(self, fresh_scene):
        assert fresh_scene.get_material_info(5) is None
        assert fresh_scene.get_material_type_python(-1) is None

    def test_invalid_albedo_length(self, fresh_scene):
        with pytest.raises(ValueError, match="3 components"):
            fresh_scene.add_lambertian_material((0.5, 0.5))

    def test_invalid_parameters_propagate(self, fresh_scene):
        with pytest.raises(ValueError):
            fresh_scene.add_metal_material((0.5, 0.5, 0.5), fuzz=2.0)
        with pytest.raises(ValueError):
            fresh_scene.add_dielectric_material(-1.0)
        assert fresh_scene.get_material_count() == 0

    def test_kernel_side_type_lookup(self, fresh_scene):
        from spheretracer.scene.manager import (
            MaterialType,
            get_material_type,
            get_material_type_index,
        )

        fresh_scene.add_lambertian_material((0.5, 0.5, 0.5))
        fresh_scene.add_dielectric_material(1.5)
        fresh_scene.add_dielectric_material(1.33)

        types = ti.field(dtype=ti.i32, shape=4)
        indices = ti.field(dtype=ti.i32, shape=4)

        @ti.kernel
        def test_kernel():
            for i in range(4):
                types[i] = get_material_type(i)
                indices[i] = get_material_type_index(i)

        test_kernel()
        assert types.to_numpy().tolist() == [
            int(MaterialType.LAMBERTIAN),
            int(MaterialType.DIELECTRIC),
            int(MaterialType.DIELECTRIC),
            -1,
        ]
        assert indices.to_numpy().tolist() == [0, 0, 1, -1]


class TestSpheres:
    """Tests for sphere management."""

    def test_add_sphere(self, fresh_scene):
        mat = fresh_scene.add_lambertian_material((0.5, 0.5, 0.5))
        assert fresh_scene.add_sphere((0.0, 0.0, -1.0), 0.5, mat) == 0
        assert fresh_scene.add_sphere((1.0, 0.0, -1.0), -0.4, mat) == 1
        assert fresh_scene.get_sphere_count() == 2
        assert fresh_scene.spheres[1].radius == -0.4

    @pytest.mark.parametrize("material_id", [-1, 1, 10])
    def test_invalid_material_id(self, fresh_scene, material_id):
        fresh_scene.add_lambertian_material((0.5, 0.5, 0.5))
        with pytest.raises(ValueError, match="Invalid material_id"):
            fresh_scene.add_sphere((0.0, 0.0, -1.0), 0.5, material_id)

    def test_zero_radius(self, fresh_scene):
        mat = fresh_scene.add_lambertian_material((0.5, 0.5, 0.5))
        with pytest.raises(ValueError):
            fresh_scene.add_sphere((0.0, 0.0, -1.0), 0.0, mat)
        assert fresh_scene.spheres == []

    def test_convenience_methods(self, fresh_scene):
        from spheretracer.scene.manager import MaterialType

        assert fresh_scene.add_lambertian_sphere((0.0, 0.0, -1.0), 0.5, (0.1, 0.2, 0.5)) == (0, 0)
        assert fresh_scene.add_metal_sphere((1.0, 0.0, -1.0), 0.5, (0.8, 0.6, 0.2), 1.0) == (1, 1)
        assert fresh_scene.add_dielectric_sphere((-1.0, 0.0, -1.0), 0.5) == (2, 2)
        assert fresh_scene.get_material_type_python(2) == MaterialType.DIELECTRIC

    def test_clear(self, fresh_scene):
        fresh_scene.add_lambertian_sphere((0.0, 0.0, -1.0), 0.5, (0.5, 0.5, 0.5))
        fresh_scene.clear()
        assert fresh_scene.get_sphere_count() == 0
        assert fresh_scene.get_material_count() == 0
        assert fresh_scene.materials == []
        assert fresh_scene.spheres == []

    def test_new_manager_clears_storage(self, fresh_scene):
        from spheretracer.scene.manager import SceneManager

        fresh_scene.add_lambertian_sphere((0.0, 0.0, -1.0), 0.5, (0.5, 0.5, 0.5))
        other = SceneManager()
        assert other.get_sphere_count() == 0
        assert other.get_material_count() == 0

    def test_capacities(self):
        from spheretracer.scene.intersection import MAX_SPHERES
        from spheretracer.scene.manager import MAX_MATERIALS, SceneManager

        assert SceneManager.get_max_spheres() == MAX_SPHERES
        assert SceneManager.get_max_materials() == MAX_MATERIALS


class TestSerialization:
    """Tests for scene export and import."""

    def _build(self, scene):
        ground = scene.add_lambertian_material((0.8, 0.8, 0.0))
        glass = scene.add_dielectric_material(1.5)
        gold = scene.add_metal_material((0.8, 0.6, 0.2), fuzz=1.0)
        scene.add_sphere((0.0, -100.5, -1.0), 100.0, ground)
        scene.add_sphere((-1.0, 0.0, -1.0), 0.5, glass)
        scene.add_sphere((-1.0, 0.0, -1.0), -0.45, glass)
        scene.add_sphere((1.0, 0.0, -1.0), 0.5, gold)

    def test_to_config(self, fresh_scene):
        self._build(fresh_scene)
        config = fresh_scene.to_config()

        assert config.materials[0] == {"type": "lambertian", "albedo": [0.8, 0.8, 0.0]}
        assert config.materials[1] == {"type": "dielectric", "ior": 1.5}
        assert config.materials[2] == {"type": "metal", "albedo": [0.8, 0.6, 0.2], "fuzz": 1.0}
        assert config.spheres[2] == {"center": [-1.0, 0.0, -1.0], "radius": -0.45, "material_id": 1}

    def test_dict_round_trip_through_json(self, fresh_scene):
        self._build(fresh_scene)
        data = json.loads(json.dumps(fresh_scene.to_dict()))

        from spheretracer.scene.manager import SceneManager

        restored = SceneManager()
        restored.from_dict(data)

        assert restored.get_sphere_count() == 4
        assert restored.get_material_count() == 3
        assert restored.to_dict() == data

    def test_from_config_replaces_scene(self, fresh_scene):
        from spheretracer.scene.manager import SceneConfig

        fresh_scene.add_lambertian_sphere((5.0, 5.0, 5.0), 1.0, (0.5, 0.5, 0.5))
        fresh_scene.from_config(
            SceneConfig(
                materials=[{"type": "Metal", "albedo": [0.7, 0.7, 0.7]}],
                spheres=[{"center": [0.0, 0.0, -1.0], "radius": 0.5, "material_id": 0}],
            )
        )
        assert fresh_scene.get_sphere_count() == 1
        info = fresh_scene.get_material_info(0)
        assert info.params["fuzz"] == 0.0

    def test_unknown_material_type(self, fresh_scene):
        with pytest.raises(ValueError, match="Unknown material type"):
            fresh_scene.from_dict({"materials": [{"type": "emissive"}], "spheres": []})

    def test_sphere_with_missing_material(self, fresh_scene):
        with pytest.raises(ValueError, match="Invalid material_id"):
            fresh_scene.from_dict(
                {
                    "materials": [{"type": "lambertian", "albedo": [0.5, 0.5, 0.5]}],
                    "spheres": [{"center": [0, 0, -1], "radius": 0.5, "material_id": 3}],
                }
            )

    @pytest.mark.parametrize(
        "data",
        [
            {
                "materials": [
                    {"type": "lambertian", "albedo": [0.5, 0.5, 0.5]},
                    {"type": "emissive"},
                ],
                "spheres": [],
            },
            {
                "materials": [{"type": "lambertian", "albedo": [0.5, 0.5, 0.5]}],
                "spheres": [{"center": [0, 0, -1], "radius": 0.5, "material_id": 1}],
            },
        ],
    )
    def test_failed_load_keeps_current_scene(self, fresh_scene, data):
        self._build(fresh_scene)
        before = fresh_scene.to_dict()

        with pytest.raises(ValueError):
            fresh_scene.from_dict(data)

        assert fresh_scene.get_sphere_count() == 4
        assert fresh_scene.get_material_count() == 3
        assert fresh_scene.to_dict() == before
