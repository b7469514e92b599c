import threading

from lsmcore.kernel import KernelNumberContext


def test_file_numbers_increase():
    kernel = KernelNumberContext()
    first = kernel.new_file_number()
    second = kernel.new_file_number()
    assert second == first + 1
    assert kernel.current_next_file_number() == second + 1


def test_fetch_add_file_number_reserves_range():
    kernel = KernelNumberContext()
    start = kernel.fetch_add_file_number(5)
    assert kernel.current_next_file_number() == start + 5
    assert kernel.new_file_number() == start + 5


def test_mark_file_number_used():
    kernel = KernelNumberContext()
    kernel.mark_file_number_used(10)
    assert kernel.current_next_file_number() == 11
    kernel.mark_file_number_used(3)
    assert kernel.current_next_file_number() == 11


def test_memtable_numbers_are_independent():
    kernel = KernelNumberContext()
    kernel.fetch_add_file_number(7)
    a = kernel.new_memtable_number()
    b = kernel.new_memtable_number()
    assert b == a + 1
    assert kernel.current_next_file_number() == 7


def test_last_sequence():
    kernel = KernelNumberContext()
    kernel.set_last_sequence(1234)
    assert kernel.last_sequence() == 1234


def test_column_family_ids():
    kernel = KernelNumberContext()
    kernel.set_max_column_family(4)
    assert kernel.get_max_column_family() == 4
    new_id = kernel.next_column_family_id()
    assert new_id == 5
    assert kernel.get_max_column_family() == new_id


def test_concurrent_file_numbers_are_unique():
    kernel = KernelNumberContext()
    results = []
    results_lock = threading.Lock()

    def worker():
        local = [kernel.new_file_number() for _ in range(200)]
        with results_lock:
            results.extend(local)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert sorted(results) == list(range(len(results)))
    assert kernel.current_next_file_number() == len(results)