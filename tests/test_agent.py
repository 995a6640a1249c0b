"""
Tests for core/agent.py and core/segment.py

Body plans: placement geometry, indices, attachments, freezing.
"""

import numpy as np
import pytest

from oids.core.agent import Agent, AgentBuilder, AgentRef, AgentState, AgentType
from oids.core.charge import ChargeState
from oids.core.geometry import Ball, Box, Mesh, Poly, Star, Transform, Winding
from oids.core.segment import Attachment, Flags, Intent, IntentKind, Livery, Material, Segment


def make_segment(shape=None, flags=Flags.NONE, index=0):
    return Segment(
        transform=Transform([0.0, 0.0], 0.0),
        index=index,
        mesh=Mesh.from_shape(shape or Ball(1.0)),
        material=Material(),
        livery=Livery(),
        state=ChargeState(),
        flags=flags,
    )


class TestSegment:
    """Tests for Segment helpers."""

    def test_new_attachment_in_range(self):
        segment = make_segment(Poly(1.0, 4), index=3)
        assert segment.new_attachment(5) == Attachment(index=3, attachment_point=5)

    def test_new_attachment_clamps(self):
        segment = make_segment(Box(1.0, 1.0))
        assert segment.new_attachment(5).attachment_point == 4
        assert segment.new_attachment(99).attachment_point == 4

    def test_color_scales_with_charge(self):
        segment = make_segment()
        segment.state.set_charge(1.0)
        r, g, b, a = segment.color()
        assert r == pytest.approx(5.0)
        assert a == pytest.approx(1.0)

        segment.state.set_charge(0.0)
        assert segment.color()[0] == pytest.approx(0.05)

    def test_flag_membership(self):
        segment = make_segment(flags=Flags.ACTUATOR | Flags.RUDDER | Flags.LEFT)
        assert Flags.RUDDER in segment.flags
        assert (Flags.RUDDER | Flags.LEFT) in segment.flags
        assert (Flags.RUDDER | Flags.RIGHT) not in segment.flags
        assert Flags.THRUSTER not in segment.flags


class TestIntent:

    def test_idle_has_no_vector(self):
        assert Intent.idle().kind is IntentKind.IDLE
        assert Intent.idle().vector is None

    def test_vector_intents(self):
        intent = Intent.brake([1, 2])
        assert intent.kind is IntentKind.BRAKE
        assert intent.vector.dtype == np.float64


class TestAgentState:

    def test_retarget(self):
        state = AgentState(target_position=[0.0, 0.0])
        state.retarget(4, np.array([1.0, 2.0]))
        assert state.target == 4
        np.testing.assert_array_equal(state.target_position, [1.0, 2.0])

    def test_active_by_default(self):
        assert AgentState(target_position=[0, 0]).is_active()


class TestAgentBuilder:
    """Tests for body plan assembly."""

    def test_start_places_root(self):
        agent = AgentBuilder(1).start([3.0, 4.0], 0.5, Ball(1.0)).build()
        root = agent.segments[0]
        np.testing.assert_array_equal(root.position, [3.0, 4.0])
        assert root.angle == 0.5
        assert root.index == 0
        assert root.attached_to is None
        assert Flags.TORSO in root.flags
        assert Flags.MIDDLE in root.flags
        assert root.mesh.winding is Winding.CW

    def test_start_resets(self):
        builder = AgentBuilder(1).start([0, 0], 0.0, Ball(1.0))
        builder.add(0, 0, Ball(1.0))
        builder.start([0, 0], 0.0, Ball(2.0))
        assert len(builder.segments) == 1
        assert builder.index() == 0

    def test_child_placed_edge_to_edge(self):
        builder = AgentBuilder(1).start([0.0, 0.0], 0.0, Ball(1.0))
        builder.add(0, 0, Ball(0.5))
        child = builder.segments[1]
        np.testing.assert_allclose(child.position, [0.0, 1.5], atol=1e-12)
        assert child.angle == pytest.approx(np.pi)
        assert child.attached_to == Attachment(index=0, attachment_point=0)

    def test_child_follows_parent_rotation(self):
        builder = AgentBuilder(1).start([1.0, 1.0], np.pi / 2, Ball(1.0))
        builder.add(0, 0, Ball(0.5))
        child = builder.segments[1]
        np.testing.assert_allclose(child.position, [-0.5, 1.0], atol=1e-12)
        assert child.angle == pytest.approx(np.pi / 2 + np.pi)

    def test_child_distance_uses_vertex_distance(self):
        poly = Poly(2.0, 4)
        builder = AgentBuilder(1).start([0.0, 0.0], 0.0, poly)
        builder.add(0, 1, Ball(1.0))
        child = builder.segments[1]
        # Vertex 1 is an edge midpoint at the apothem
        apothem = 2.0 * np.cos(np.pi / 4)
        assert np.linalg.norm(child.position) == pytest.approx(apothem + 1.0)

    def test_offset_wraps_modulo_vertex_count(self):
        shape = Star(1.0, 4)
        builder = AgentBuilder(1).start([0.0, 0.0], 0.3, shape)
        builder.add(0, 0, Ball(0.5)).add(0, shape.length, Ball(0.5))
        a, b = builder.segments[1], builder.segments[2]
        assert a.attached_to.attachment_point == b.attached_to.attachment_point == 0
        np.testing.assert_allclose(a.position, b.position)

    def test_negative_offset_counts_backward(self):
        shape = Poly(1.0, 5)
        builder = AgentBuilder(1).start([0.0, 0.0], 0.0, shape)
        builder.add_right(0, 2, Ball(0.5)).add_left(0, -2, Ball(0.5))
        right, left = builder.segments[1], builder.segments[2]
        assert right.attached_to.attachment_point == 2
        assert left.attached_to.attachment_point == shape.length - 2
        # Mirror images across the vertical axis
        np.testing.assert_allclose(left.position, [-right.position[0], right.position[1]], atol=1e-12)

    def test_side_flags_and_winding(self):
        builder = AgentBuilder(1).start([0, 0], 0.0, Poly(1.0, 4))
        builder.add(0, 0, Ball(0.5), Flags.HEAD)
        builder.add_left(0, 2, Ball(0.5), Flags.ARM)
        builder.add_right(0, -2, Ball(0.5), Flags.ARM)
        middle, left, right = builder.segments[1:]
        assert Flags.HEAD | Flags.MIDDLE in middle.flags
        assert Flags.ARM | Flags.LEFT in left.flags
        assert Flags.ARM | Flags.RIGHT in right.flags
        assert middle.mesh.winding is Winding.CW
        assert left.mesh.winding is Winding.CCW
        assert right.mesh.winding is Winding.CW

    def test_add_with_winding(self):
        builder = AgentBuilder(1).start([0, 0], 0.0, Ball(1.0))
        builder.add_with_winding(0, 0, Ball(1.0), Winding.CCW, Flags.TAIL)
        segment = builder.segments[1]
        assert segment.mesh.winding is Winding.CCW
        assert segment.flags == Flags.TAIL

    def test_index_tracks_last_segment(self):
        builder = AgentBuilder(1)
        assert builder.index() == 0
        builder.start([0, 0], 0.0, Ball(1.0))
        assert builder.index() == 0
        head = builder.add(0, 0, Ball(1.0)).index()
        assert head == 1
        builder.add(head, 0, Ball(1.0))
        assert builder.segments[2].attached_to.index == head

    def test_indices_and_acyclic_attachments(self):
        rng = np.random.default_rng(3)
        builder = AgentBuilder(1).start([0, 0], 0.0, Star(1.0, 5))
        for _ in range(30):
            parent = int(rng.integers(0, len(builder.segments)))
            offset = int(rng.integers(-12, 12))
            builder.add(parent, offset, Star(float(rng.uniform(0.5, 2.0)), int(rng.integers(2, 8))))
        agent = builder.build()
        for position, segment in enumerate(agent.segments):
            assert segment.index == position
            if position == 0:
                assert segment.attached_to is None
                continue
            parent = agent.segments[segment.attached_to.index]
            assert segment.attached_to.index < segment.index
            assert 0 <= segment.attached_to.attachment_point < len(parent.mesh.vertices)

    def test_build_freezes(self):
        builder = AgentBuilder(5).start([0, 0], 0.0, Ball(1.0))
        agent = builder.build()
        builder.add(0, 0, Ball(1.0))
        assert len(agent) == 1
        assert isinstance(agent.segments, tuple)

    def test_built_segments_have_own_state(self):
        builder = AgentBuilder(5, state=ChargeState.with_charge(0.0, 1.0, 1.0))
        builder.start([0, 0], 0.0, Ball(1.0)).add(0, 0, Ball(1.0))
        agent = builder.build()
        agent.segments[0].state.set_charge(0.7)
        assert agent.segments[1].state.charge == 0.0
        assert builder.segments[0].state.charge == 0.0

    def test_build_carries_identity(self):
        builder = AgentBuilder(9, agent_type=AgentType.RESOURCE, material=Material(density=0.5))
        agent = builder.start([1, 2], 0.0, Ball(1.0)).build()
        assert agent.id == 9
        assert agent.agent_type is AgentType.RESOURCE
        assert agent.segments[0].material.density == 0.5
        assert agent.ref == AgentRef(AgentType.RESOURCE, 9)

    def test_vertex_at_parent_center(self):
        # A star with no inner core puts its notches on the origin
        builder = AgentBuilder(1).start([2.0, -1.0], 0.4, Star(1.0, 4, ratio=0.0))
        np.testing.assert_allclose(builder.segments[0].mesh.vertices[1], [0.0, 0.0], atol=1e-12)
        builder.add(0, 1, Ball(1.0))
        child = builder.build().segments[1]
        assert np.all(np.isfinite(child.position))
        np.testing.assert_allclose(child.position, [2.0, -1.0])
        assert child.attached_to == Attachment(index=0, attachment_point=1)

    def test_add_before_start(self):
        with pytest.raises(IndexError):
            AgentBuilder(1).add(0, 0, Ball(1.0))

    def test_add_to_missing_parent(self):
        builder = AgentBuilder(1).start([0, 0], 0.0, Ball(1.0))
        with pytest.raises(IndexError):
            builder.add(3, 0, Ball(1.0))

    def test_build_before_start(self):
        with pytest.raises(IndexError):
            AgentBuilder(1).build()


class TestAgent:

    def test_transform_is_root(self):
        agent = AgentBuilder(1).start([2.0, 3.0], 1.0, Ball(1.0)).add(0, 0, Ball(1.0)).build()
        np.testing.assert_array_equal(agent.position, [2.0, 3.0])
        assert agent.transform.angle == 1.0

    def test_initial_target_position_is_spawn_point(self):
        agent = AgentBuilder(1).start([2.0, 3.0], 0.0, Ball(1.0)).build()
        assert agent.state.target is None
        np.testing.assert_array_equal(agent.state.target_position, [2.0, 3.0])

    def test_segment_lookup(self):
        agent = AgentBuilder(1).start([0, 0], 0.0, Ball(1.0)).build()
        assert agent.segment(0) is agent.segments[0]
        assert agent.segment(1) is None
        assert agent.segment(-1) is None

    def test_first_segment(self):
        builder = AgentBuilder(1).start([0, 0], 0.0, Poly(1.0, 4))
        builder.add(0, 0, Ball(1.0), Flags.SENSOR)
        builder.add(0, 4, Ball(1.0), Flags.SENSOR)
        agent = builder.build()
        assert agent.first_segment(Flags.SENSOR).index == 1
        assert agent.first_segment(Flags.TORSO).index == 0
        assert agent.first_segment(Flags.BRAKE) is None

    def test_update_integrates_all_segments(self):
        builder = AgentBuilder(1, state=ChargeState.with_charge(0.0, 1.0, 1.0))
        agent = builder.start([0, 0], 0.0, Ball(1.0)).add(0, 0, Ball(1.0)).build()
        agent.update(1.0)
        for segment in agent.segments:
            assert segment.state.charge == pytest.approx(1 - np.exp(-0.5))
        assert agent.state.age_seconds == 1.0

    def test_requires_segments(self):
        with pytest.raises(ValueError):
            Agent(1, ())
