from main import main


def test_demo_runs(capsys):
    """Test the console demo end to end"""
    main()
    out = capsys.readouterr().out
    assert "First 10 primes: [2, 3, 5, 7, 11, 13, 17, 19, 23, 29]" in out
    assert "sum to 4613732" in out
    assert "cons(1, [2, 3, 4, 5]) -> [1, 2, 3, 4, 5]" in out
    assert "(unbounded=False)" in out
    assert "refused" in out
    assert "Result: [16, 36, 64]" in out
    # only the squares needed for three results past the dropped one are computed
    assert out.count("computing f(") == 8
