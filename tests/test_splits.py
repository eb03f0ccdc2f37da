from scrollsource.core.splits import DefaultSplitAssigner, InputSplit, create_single_split


def test_single_split_covers_everything() -> None:
    assert create_single_split() == [InputSplit(split_number=0, total_number_of_splits=1)]


def test_assigner_hands_out_in_arrival_order() -> None:
    a, b = InputSplit(0, 2), InputSplit(1, 2)
    assigner = DefaultSplitAssigner([a, b])

    assert assigner.get_next_input_split("h", 0) == a
    assert assigner.get_next_input_split("h", 1) == b
    assert assigner.get_next_input_split("h", 2) is None


def test_returned_splits_are_reassigned() -> None:
    split = create_single_split()[0]
    assigner = DefaultSplitAssigner([split])
    taken = assigner.get_next_input_split()

    assigner.return_input_splits([taken], task_id=3)

    assert len(assigner) == 1
    assert assigner.get_next_input_split() == split
