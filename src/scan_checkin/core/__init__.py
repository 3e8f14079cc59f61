"""Pipeline core: function toolkit, queue, guard, reducer and reporter."""
